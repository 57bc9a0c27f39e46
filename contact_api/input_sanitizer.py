import re
from typing import Any, Dict

from bleach.sanitizer import Cleaner


class InputSanitizer:
    """Strips markup from submitted text so only plain text is stored"""

    # Elements whose contents are dropped along with the tags
    NON_TEXT_TAGS = ["script", "style", "textarea", "option"]

    def __init__(self):
        self.cleaner = Cleaner(
            tags=set(),
            attributes={},
            strip=True,
            strip_comments=True,
        )
        self._non_text_pattern = re.compile(
            r"<(%s)\b[^>]*>.*?</\1\s*>" % "|".join(self.NON_TEXT_TAGS),
            flags=re.IGNORECASE | re.DOTALL,
        )

    def sanitize_text(self, text: str) -> str:
        text = self._non_text_pattern.sub("", text)
        return self.cleaner.clean(text).strip()

    def sanitize_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Sanitize every string value of a request body; other values pass through"""
        return {
            key: self.sanitize_text(value) if isinstance(value, str) else value
            for key, value in data.items()
        }


# Global sanitizer instance
sanitizer = InputSanitizer()
