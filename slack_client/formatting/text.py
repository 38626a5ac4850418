from __future__ import annotations

import re

# Characters Slack reserves for its own markup, in the order they must be escaped
_ESCAPES = (("&", "&amp;"), ("<", "&lt;"), (">", "&gt;"))


class SlackFormattingMixin:
    def _clean_mentions(self, text: str) -> str:
        """Remove Slack user mentions from text"""
        return re.sub(r'<@[A-Z0-9]+>', '', text).strip()

    def format_text(self, text: str) -> str:
        """Escape relayed text so Slack shows it verbatim"""
        for raw, escaped in _ESCAPES:
            text = text.replace(raw, escaped)
        return text

    def unformat_text(self, text: str) -> str:
        """Turn the text Slack reports back into what was relayed"""
        for raw, escaped in reversed(_ESCAPES):
            text = text.replace(escaped, raw)
        return text
