"""Static finance abbreviation dictionary: the last-resort query expansion.

Terms are matched as whole words against the lowercased query; every
match contributes its expansion terms, de-duplicated in first-seen order
and appended to the query.
"""

from __future__ import annotations

import re

FINANCE_EXPANSION_DICTIONARY: dict[str, list[str]] = {
    "ppne": ["property", "plant", "equipment", "net", "PP&E", "fixed assets"],
    "ppe": ["property", "plant", "equipment", "PP&E", "fixed assets"],
    "net ppne": ["net property plant equipment", "PP&E net", "fixed assets net"],
    "dpo": ["days", "payable", "outstanding", "accounts payable", "payment terms"],
    "dso": ["days", "sales", "outstanding", "accounts receivable", "collection"],
    "dio": ["days", "inventory", "outstanding", "inventory turnover"],
    "eps": ["earnings", "per", "share", "net income", "shares outstanding"],
    "ebitda": [
        "earnings", "before", "interest", "taxes", "depreciation", "amortization",
        "operating income",
    ],
    "ebit": ["earnings", "before", "interest", "taxes", "operating income"],
    "roe": ["return", "on", "equity", "net income", "shareholders equity"],
    "roa": ["return", "on", "assets", "net income", "total assets"],
    "roic": ["return", "on", "invested", "capital"],
    "quick ratio": ["acid test", "current assets", "current liabilities", "inventory"],
    "current ratio": ["current assets", "current liabilities", "liquidity"],
    "d/e": ["debt", "to", "equity", "leverage", "financial leverage"],
    "p/e": ["price", "to", "earnings", "valuation", "multiple"],
    "fy": ["fiscal", "year", "annual", "yearly"],
    "ocf": ["operating", "cash", "flow", "cash from operations"],
    "fcf": ["free", "cash", "flow", "capital expenditure"],
    "capex": ["capital", "expenditure", "investment", "PP&E additions"],
    "cogs": ["cost", "of", "goods", "sold", "cost of sales", "cost of revenue"],
    "sga": ["selling", "general", "administrative", "operating expenses"],
    "r&d": ["research", "development", "R&D expense"],
    "goodwill": ["intangible", "assets", "acquisition"],
    "inventory": ["inventories", "stock", "merchandise"],
    "receivables": ["accounts receivable", "trade receivables", "AR"],
    "payables": ["accounts payable", "trade payables", "AP"],
    "debt securities": ["notes", "bonds", "debentures", "fixed income", "investments"],
    "restructuring": [
        "restructuring charges", "restructuring liability", "employee severance", "impairment",
    ],
    "organic growth": ["organic", "excluding acquisitions", "excluding M&A", "core growth"],
    "segment": ["business segment", "operating segment", "division", "reportable segment"],
    "revenue growth": ["sales growth", "top line growth", "net sales change"],
}

_TERM_PATTERNS: dict[str, re.Pattern[str]] = {
    term: re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE)
    for term in FINANCE_EXPANSION_DICTIONARY
}


def matched_terms(query: str) -> list[str]:
    """Dictionary terms found in ``query``, in dictionary order."""
    lowered = query.lower()
    return [term for term, pattern in _TERM_PATTERNS.items() if pattern.search(lowered)]


def expand_with_dictionary(query: str) -> str:
    """Append the expansions of every matched term to ``query``.

    Returns ``query`` unchanged when nothing matches.

    >>> expand_with_dictionary("What is ppne?")
    'What is ppne? property plant equipment net PP&E fixed assets'
    """
    expansions: list[str] = []
    seen: set[str] = set()
    for term in matched_terms(query):
        for word in FINANCE_EXPANSION_DICTIONARY[term]:
            if word not in seen:
                seen.add(word)
                expansions.append(word)
    if not expansions:
        return query
    return f"{query} {' '.join(expansions)}"
