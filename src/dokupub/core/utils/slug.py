"""Anchor generation for heading ids and section links"""

import re


def section_id(text: str) -> str:
    """Convert heading text to a lowercase, underscore-separated anchor id."""
    text = text.lower()
    text = re.sub(r'[^a-z0-9]+', '_', text)
    return text.strip('_') or 'section'
