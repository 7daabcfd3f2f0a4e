"""Boundary and injection strings used to abuse input fields."""

import json

EVIL_STRINGS = [
    "",  # empty
    " ",  # whitespace
    "   ",  # multiple spaces
    "\n\n\n",  # newlines
    "\t\t\t",  # tabs
    "A" * 1000,  # very long
    "A" * 10000,  # extremely long
    '<script>alert("xss")</script>',
    '"; DROP TABLE users; --',
    "../../../etc/passwd",
    "${7*7}",  # template injection
    "{{7*7}}",  # template injection
    "%00",  # url-encoded null byte
    "\u0000",  # null character
    "🔥💩🎉👻🤖",
    "你好世界",
    "א ב ג",  # RTL text
    "\ufdfd",  # longest unicode character
    "\ufffe",  # noncharacter
    "\u202e",  # RTL override
    "<img src=x onerror=alert(1)>",
    "javascript:alert(1)",
    "data:text/html,<script>alert(1)</script>",
    "'; alert(1); //",  # quote escape
    "\\",
    "\r\n\r\n",  # CRLF injection
]


def describe_evil_string(value: str) -> str:
    """Short human-readable label for an evil string."""
    if value == "":
        return "empty string"
    if len(value) > 100:
        return f"very long string ({len(value)} chars)"
    if "<script>" in value:
        return "XSS attempt"
    if "DROP TABLE" in value:
        return "SQL injection"
    if "../" in value:
        return "path traversal"
    if any(ord(char) > 0xFFFF for char in value):
        return "emoji string"
    if any(0x80 <= ord(char) <= 0xFFFF for char in value):
        return "unicode string"
    if "\n" in value:
        return "multiline string"
    return json.dumps(value, ensure_ascii=False)[:50]
