import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List

LOCALISATION_DIR = Path(__file__).resolve().parent / "localisation"
DEFAULT_LANGUAGE = "en"
_LOGGER = logging.getLogger(__name__)


def _fallback_chain(lang: str) -> List[str]:
    """``fr_ca`` -> ``["fr_ca", "fr", "en"]``, regional code first."""
    code = (lang or "").strip().lower().replace("-", "_")
    chain = []
    if code:
        chain.append(code)
        base = code.split("_", 1)[0]
        if base != code:
            chain.append(base)
    if DEFAULT_LANGUAGE not in chain:
        chain.append(DEFAULT_LANGUAGE)
    return chain


@lru_cache(maxsize=None)
def _strings_file(code: str) -> Dict[str, str]:
    path = LOCALISATION_DIR / code / "strings.json"
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle).get("strings", {})


@lru_cache(maxsize=None)
def _table(lang: str) -> Dict[str, str]:
    chain = _fallback_chain(lang)
    table: Dict[str, str] = {}
    for code in reversed(chain):
        table.update(_strings_file(code))

    own = [code for code in chain if code != DEFAULT_LANGUAGE and _strings_file(code)]
    if own:
        covered = set().union(*(_strings_file(code).keys() for code in own))
        missing = sorted(set(_strings_file(DEFAULT_LANGUAGE)) - covered)
        if missing:
            _LOGGER.warning("Missing localisation strings for %s: %s", own[0], ", ".join(missing))
    return table


def tr(lang: str, key: str, **values) -> str:
    """Translated string for ``key``, formatted with ``values`` (the key itself if unknown)."""
    text = _table(lang).get(key, key)
    return text.format(**values) if values else text


def resolve_language(lang: str) -> str:
    for code in _fallback_chain(lang):
        if _strings_file(code):
            return code
    return DEFAULT_LANGUAGE
