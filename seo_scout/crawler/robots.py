# seo_scout/crawler/robots.py
"""
Parser and checker for robots.txt rules (RFC 9309).
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

_Directive = Tuple[str, str]


class RobotsTxtRules:
    """
    Parsed robots.txt.

    The longest matching rule wins, ``allow`` wins ties; an empty Disallow
    allows everything. ``Sitemap:`` lines are collected regardless of group.
    """
    _WILDCARD_RE = re.compile(r"(\*|\$)")

    def __init__(self, text: str) -> None:
        self._groups: List[Dict[str, object]] = []
        self._regex_cache: Dict[str, re.Pattern[str]] = {}
        self.sitemaps: List[str] = []
        self._parse(text)

    def can_fetch(self, user_agent: str, path: str) -> bool:
        """True if *user_agent* may fetch *path* (path plus optional query)."""
        group = self._match_group(user_agent)
        if group is None:
            return True
        best_len = -1
        allow: Optional[bool] = None
        for directive, pattern in group["directives"]:  # type: ignore[attr-defined]
            if not self._match_path(path, pattern):
                continue
            length = self._rule_len(pattern)
            if length > best_len or (length == best_len and directive == "allow" and allow is False):
                best_len = length
                allow = directive == "allow"
        return True if allow is None else allow

    def _new_group(self) -> Dict[str, object]:
        group: Dict[str, object] = {"agents": [], "directives": []}
        self._groups.append(group)
        return group

    def _parse(self, text: str) -> None:
        current: Optional[Dict[str, object]] = None
        for raw in text.splitlines():
            line = raw.split("#", 1)[0].strip()
            if not line:
                continue
            key, _, val = line.partition(":")
            key = key.lower().strip()
            val = val.strip()
            if key == "sitemap":
                if val:
                    self.sitemaps.append(val)
            elif key == "user-agent":
                if current is None or (current["agents"] and current["directives"]):
                    current = self._new_group()
                current["agents"].append(val.lower())  # type: ignore[attr-defined]
            elif key in ("allow", "disallow"):
                if key == "disallow" and val == "":
                    continue
                if current is None:
                    current = self._new_group()
                    current["agents"].append("*")  # type: ignore[attr-defined]
                current["directives"].append((key, val))  # type: ignore[attr-defined]

    def _match_group(self, user_agent: str) -> Optional[Dict[str, object]]:
        ua = user_agent.lower()
        if ua != "*":
            for group in self._groups:
                if any(a != "*" and ua.startswith(a) for a in group["agents"]):  # type: ignore[attr-defined]
                    return group
        for group in self._groups:
            if "*" in group["agents"]:  # type: ignore[operator]
                return group
        return None

    def _match_path(self, path: str, pattern: str) -> bool:
        if pattern not in self._regex_cache:
            esc = re.escape(pattern).replace(r"\*", ".*")
            if pattern.endswith("$"):
                esc = esc[:-2] + "$"
            self._regex_cache[pattern] = re.compile(f"^{esc}")
        return bool(self._regex_cache[pattern].match(path))

    @classmethod
    def _rule_len(cls, pattern: str) -> int:
        return len(cls._WILDCARD_RE.sub("", pattern))
