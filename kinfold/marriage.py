"""Married-in versus blood classification."""

from __future__ import annotations

from typing import Dict, FrozenSet, List, Optional, Set

from .index import RecordIndex
from .schemas import Member
from .utils import logger


class MarriageResolver:
    """Decide whether a member joined the family by marriage.

    A member is married-in when it is registered as someone's spouse, the
    partner resolves, and the member did not descend from the family itself.
    The usual case is an outside spouse with no recorded parent.

    Same-parent "spouses" are a known defect in the source data: two siblings
    linked as partners. The one without its own spouse link is treated as the
    incoming partner (the greater id when both declare it). Every such pair is
    collected in :attr:`flagged_pairs` for manual review.

    Results are memoised, so one resolver should serve one traversal of one
    index snapshot.
    """

    def __init__(self, index: RecordIndex) -> None:
        self.index = index
        self.flagged_pairs: Set[FrozenSet[str]] = set()
        self._cache: Dict[str, bool] = {}

    def partner(self, member: Member) -> Optional[Member]:
        return self.index.spouse(member)

    def is_married_in(self, member: Member) -> bool:
        cached = self._cache.get(member.id)
        if cached is None:
            cached = self._classify(member)
            self._cache[member.id] = cached
        return cached

    def _anchors(self, member: Member) -> bool:
        # Founder, or a member whose recorded parent simply is not in the snapshot.
        return member.is_founder or bool(member.parent_id)

    def _classify(self, member: Member) -> bool:
        partner = self.partner(member)
        if partner is None:
            return False
        if member.is_founder and self.index.parent(member) is None:
            return False

        own_parent = self.index.parent(member)
        partner_parent = self.index.parent(partner)

        if own_parent is None:
            if partner_parent is not None:
                return True
            return self._anchors(partner) and not self._anchors(member)

        if partner_parent is None:
            return False
        if member.parent_id != partner.parent_id:
            return False
        if partner_parent.branch_id != partner.branch_id:
            return False
        return self._resolve_sibling_pair(member, partner)

    def _resolve_sibling_pair(self, member: Member, partner: Member) -> bool:
        pair = frozenset((member.id, partner.id))
        if pair not in self.flagged_pairs:
            self.flagged_pairs.add(pair)
            logger.warning(
                "Members %s and %s share parent %s and are linked as spouses; review this record",
                *sorted(pair),
                member.parent_id,
            )
        member_declares = member.spouse_id == partner.id
        partner_declares = partner.spouse_id == member.id
        if member_declares != partner_declares:
            return not member_declares
        return member.id > partner.id

    def married_in_members(self) -> List[Member]:
        return [member for member in self.index.members if self.is_married_in(member)]

    def flagged(self) -> List[List[str]]:
        return sorted(sorted(pair) for pair in self.flagged_pairs)


__all__ = ["MarriageResolver"]
