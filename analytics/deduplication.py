"""Merchant deduplication: plan merges by brand, then apply them to a snapshot."""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Iterable, Optional

import pandas as pd

from analytics.lexicon import DEFAULT_LEXICON, MerchantLexicon
from analytics.merchants import MerchantLike, as_merchant_record, extract_brand_name
from core.logging_setup import get_logger
from core.models import MergePlan, MerchantRecord

__all__ = [
    "grouping_key",
    "preview_duplicate_groups",
    "plan_merchant_merges",
    "apply_merge_plans",
]

logger = get_logger("pocketledger.analytics.deduplication")

_WORD_SPLIT = re.compile(r"[\s\-_]+")


def grouping_key(name: str, lexicon: MerchantLexicon = DEFAULT_LEXICON) -> str:
    """Return the brand key used to group a merchant name with its duplicates.

    Generic prefixes ("shop", "stacja", ...) are never used as the key.
    """

    brand = extract_brand_name(name, lexicon)
    if brand and brand not in lexicon.generic_prefixes:
        return brand

    lowered = name.lower().strip()
    for word in _WORD_SPLIT.split(lowered):
        if word not in lexicon.generic_prefixes and len(word) >= 3:
            return word
    return _WORD_SPLIT.sub("", lowered)


def _group_merchants(
    merchants: Iterable[MerchantLike],
    lexicon: MerchantLexicon,
) -> dict[str, list[MerchantRecord]]:
    groups: dict[str, list[MerchantRecord]] = {}
    for merchant in merchants:
        record = as_merchant_record(merchant)
        groups.setdefault(grouping_key(record.name, lexicon), []).append(record)
    return groups


def preview_duplicate_groups(
    merchants: Iterable[MerchantLike],
    lexicon: MerchantLexicon = DEFAULT_LEXICON,
) -> dict[str, list[MerchantRecord]]:
    """Return groups with more than one member, without choosing survivors."""

    groups = _group_merchants(merchants, lexicon)
    return {key: members for key, members in groups.items() if len(members) > 1}


def plan_merchant_merges(
    merchants: Iterable[MerchantLike],
    lexicon: MerchantLexicon = DEFAULT_LEXICON,
) -> list[MergePlan]:
    """Decide which merchant survives in each duplicate group.

    The survivor is the first record, in input order, after ranking by: has a
    category, has an icon, shortest name. Nothing is written anywhere; the
    returned plans are applied by the caller (or :func:`apply_merge_plans`).
    """

    plans: list[MergePlan] = []
    for key, members in preview_duplicate_groups(merchants, lexicon).items():
        ranked = sorted(
            enumerate(members),
            key=lambda item: (
                item[1].category_id is None,
                item[1].icon_url is None,
                len(item[1].name),
                item[0],
            ),
        )
        survivor = ranked[0][1]
        duplicates = [record for _, record in ranked[1:]]
        plan = MergePlan(
            group_key=key,
            survivor_id=survivor.id,
            survivor_name=survivor.name,
            deleted_ids=tuple(record.id for record in duplicates),
            deleted_names=tuple(record.name for record in duplicates),
        )
        logger.info(
            "Merge plan for %r: keep %s (%s), delete %s",
            key,
            survivor.id,
            survivor.name,
            ", ".join(plan.deleted_ids),
        )
        plans.append(plan)
    return plans


def apply_merge_plans(
    merchants: Iterable[MerchantLike],
    plans: Iterable[MergePlan],
    transactions: Optional[pd.DataFrame] = None,
) -> tuple[list[MerchantRecord], Optional[pd.DataFrame]]:
    """Apply merge plans to an in-memory snapshot.

    Returns the surviving merchants, with the names and aliases of deleted
    records folded into the survivor's aliases where they stay globally unique,
    and a copy of ``transactions`` whose ``merchant_id`` values point at the
    survivors. The inputs are left untouched.
    """

    records = {record.id: record for record in map(as_merchant_record, merchants)}
    redirects: dict[str, str] = {}

    for plan in plans:
        if plan.survivor_id not in records:
            raise ValueError(f"Unknown survivor merchant id: {plan.survivor_id}")

        survivor = records[plan.survivor_id]
        deleted = [records.pop(merchant_id) for merchant_id in plan.deleted_ids if merchant_id in records]

        taken: set[str] = set()
        for other in records.values():
            if other.id != survivor.id:
                taken.update(other.match_keys)

        inherited = {key for record in deleted for key in record.match_keys}
        aliases = (set(survivor.aliases) | inherited) - taken - {survivor.name.lower()}
        records[survivor.id] = replace(survivor, aliases=frozenset(aliases))

        for record in deleted:
            redirects[record.id] = survivor.id

    updated: Optional[pd.DataFrame] = None
    if transactions is not None:
        updated = transactions.copy()
        if redirects and "merchant_id" in updated.columns:
            merchant_ids = updated["merchant_id"].astype(object)
            merchant_ids = merchant_ids.map(
                lambda value: redirects.get(value, value) if isinstance(value, str) else value
            ).astype(object)
            updated["merchant_id"] = merchant_ids.where(merchant_ids.notna(), None)

    return list(records.values()), updated
