"""
Default Slack message blocks.

Texts are looked up by language; unknown languages fall back to English.
"""

from typing import Any, Dict, List

from ecs_deployer.models import RunContext

DEFAULT_LANGUAGE = "eng"

# Per-language texts: context labels, headers, button captions
MESSAGES: Dict[str, Dict[str, str]] = {
    "eng": {
        "repository": "Repository",
        "branch": "Branch",
        "event": "Event",
        "commit": "Commit",
        "started": "Deployment started...",
        "succeeded": "Deployment succeeded!!",
        "failed": "Deployment failed!!",
        "status_button": "Deployment status",
        "result_button": "Details",
        "commit_button": "Commit info",
    },
    "kor": {
        "repository": "저장소",
        "branch": "브랜치",
        "event": "이벤트",
        "commit": "커밋",
        "started": "배포 시작...",
        "succeeded": "배포 완료!!",
        "failed": "배포 실패!!",
        "status_button": "배포상태",
        "result_button": "확인",
        "commit_button": "커밋정보",
    },
}


def messages_for(language: str) -> Dict[str, str]:
    return MESSAGES.get((language or "").lower(), MESSAGES[DEFAULT_LANGUAGE])


def _button(text: str, url: str) -> Dict[str, Any]:
    return {
        "type": "button",
        "text": {"type": "plain_text", "text": text, "emoji": True},
        "url": url,
    }


def default_blocks(
    context: RunContext,
    language: str,
    header: str,
    button_text: str,
    button_url: str,
) -> List[Dict[str, Any]]:
    """
    Build the default block layout: run context, a header and two buttons.

    Args:
        context: CI run metadata
        language: Language selector (eng, kor)
        header: Key of the header text (started, succeeded, failed)
        button_text: Key of the status button caption
        button_url: Where the status button points

    Returns:
        Slack block list
    """
    texts = messages_for(language)
    summary = (
        f"{texts['repository']} : {context.repository}\n"
        f"{texts['branch']} : {context.ref}\n"
        f"{texts['event']} : {context.event_name}\n"
        f"{texts['commit']} : {context.sha}"
    )
    return [
        {"type": "section", "text": {"type": "mrkdwn", "text": summary}},
        {
            "type": "header",
            "text": {"type": "plain_text", "text": texts[header], "emoji": True},
        },
        {
            "type": "actions",
            "elements": [
                _button(texts[button_text], button_url),
                _button(texts["commit_button"], context.commit_url),
            ],
        },
    ]
