"""Header prefix derivation.

A prefix is either supplied by the caller (used verbatim for every file)
or derived from the file's base name: the first match of a regex,
followed by ``#0#`` so that headers read ``sample#haplotype#contig``.

Example:
    >>> extract_prefix("/data/GCF_002012065.1_ASM201206v1_genomic.fna")
    'GCF_002012065.1#0#'
"""

import re
from pathlib import Path

from panutils.errors import PatternMismatchError

DEFAULT_PATTERN = "[^_]+_[^_]+"
HAPLOTYPE_SUFFIX = "#0#"


def extract_prefix(path: str | Path, pattern: str | re.Pattern[str] = DEFAULT_PATTERN) -> str:
    """Derive the header prefix from a file's base name.

    Args:
        path: Input file path; only the base name is matched
        pattern: Regex (text or compiled) searched in the base name

    Returns:
        The full matched span followed by ``#0#``

    Raises:
        PatternMismatchError: If the base name has no match
    """
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    file_name = Path(path).name

    match = regex.search(file_name)
    if match is None:
        raise PatternMismatchError(file_name, regex.pattern)
    return f"{match.group(0)}{HAPLOTYPE_SUFFIX}"


def resolve_prefix(
    path: str | Path,
    prefix: str | None,
    pattern: str | re.Pattern[str] = DEFAULT_PATTERN,
) -> str:
    """Return the caller-supplied prefix, or derive one from the file name."""
    if prefix is not None:
        return prefix
    return extract_prefix(path, pattern)
