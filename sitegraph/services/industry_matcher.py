"""
Sub-industry matcher - keyword scoring against a classification table.

The table is a CSV with the columns
    sub_industry, industry, sector, sic_code, sic_description
(header row first). A table lookup is preferred over a model's guess
whenever its score clears the configured threshold.
"""

import csv
import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional

from ..models import IndustryMatch

logger = logging.getLogger(__name__)

DEFAULT_CSV_PATH = Path(__file__).resolve().parent.parent / "data" / "sub_industries.csv"
CSV_COLUMNS = ["sub_industry", "industry", "sector", "sic_code", "sic_description"]

STOP_WORDS = {
    "the", "and", "or", "for", "in", "on", "at", "to", "a", "an", "is", "of",
    "with", "as", "by", "from", "that", "this", "be", "are", "was", "were",
    "been", "have", "has", "had", "do", "does", "did", "will", "would",
    "could", "should", "may", "might", "can", "other", "n.e.c.", "activities",
}
_PUNCTUATION = re.compile(r"[^\w\s]")


def extract_keywords(text: str) -> List[str]:
    """Distinct lower-cased words longer than 2 characters, stop words removed."""
    words = _PUNCTUATION.sub(" ", (text or "").lower()).split()
    return list(dict.fromkeys(w for w in words if len(w) > 2 and w not in STOP_WORDS))


def score_entry(search_text: str, entry: IndustryMatch) -> int:
    sub_industry = entry.sub_industry.lower().strip()
    industry = entry.industry.lower().strip()

    score = 0
    keywords = extract_keywords(
        f"{entry.sub_industry} {entry.industry} {entry.sector} {entry.sic_description}"
    )
    for keyword in keywords:
        if keyword in search_text:
            score += len(keyword)
            if keyword == sub_industry:
                score += 50

    if sub_industry and sub_industry in search_text:
        score += 100
    if industry and industry in search_text:
        score += 30
    return score


class IndustryMatcher:
    def __init__(self, entries: Optional[Iterable[IndustryMatch]] = None):
        self.entries: List[IndustryMatch] = [e for e in (entries or []) if e.sub_industry]

    @classmethod
    def from_csv(cls, path=None) -> "IndustryMatcher":
        """Load the table; a missing or unreadable file yields an empty matcher."""
        csv_path = Path(path) if path else DEFAULT_CSV_PATH
        try:
            with open(csv_path, newline="", encoding="utf-8") as f:
                reader = csv.reader(f)
                next(reader, None)
                entries = []
                for row in reader:
                    if not row or not row[0].strip():
                        continue
                    values = [value.strip() for value in row] + [""] * len(CSV_COLUMNS)
                    entries.append(IndustryMatch(**dict(zip(CSV_COLUMNS, values))))
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            logger.warning(f"Could not load industry table {csv_path}: {e}")
            return cls()

        logger.info(f"Loaded {len(entries)} sub-industries from {csv_path}")
        return cls(entries)

    def __len__(self) -> int:
        return len(self.entries)

    def find_matches(self, text: str = "", company_name: str = "", domain: str = "", limit: int = 5) -> List[IndustryMatch]:
        """Entries ranked by score, zero scores dropped; ties keep table order."""
        search_text = f"{company_name} {domain} {text}".lower()
        scored = []
        for entry in self.entries:
            score = score_entry(search_text, entry)
            if score > 0:
                scored.append(entry.model_copy(update={"score": score}))
        scored.sort(key=lambda match: match.score, reverse=True)
        return scored[:limit]

    def best_match(self, text: str = "", company_name: str = "", domain: str = "") -> Optional[IndustryMatch]:
        matches = self.find_matches(text, company_name, domain, limit=1)
        return matches[0] if matches else None

    def get_details(self, sub_industry: str) -> Optional[IndustryMatch]:
        if not sub_industry:
            return None
        wanted = sub_industry.lower().strip()
        for entry in self.entries:
            if entry.sub_industry.lower().strip() == wanted:
                return entry
        return None
