"""Member generator for the library domain."""

from __future__ import annotations

import random
from datetime import datetime, timedelta
from bookstore.generators.base import BaseGenerator
from bookstore.models.library import Member, MembershipType


class MemberGenerator(BaseGenerator[Member]):
    """Generate synthetic members."""

    MEMBERSHIP_TYPES = list(MembershipType)
    MEMBERSHIP_WEIGHTS = [0.75, 0.20, 0.05]

    def generate(self, joined_before: datetime | None = None) -> Member:
        """Generate a single member.

        Parameters
        ----------
        joined_before : datetime | None
            Latest possible join date (default: now).

        Returns
        -------
        Member
            Generated member.
        """
        joined_before = joined_before or datetime.now()
        membership = random.choices(
            self.MEMBERSHIP_TYPES, weights=self.MEMBERSHIP_WEIGHTS, k=1
        )[0]
        return Member(
            member_id=self.fake.uuid4(),
            name=self.fake.name(),
            email=self.fake.email(),
            membership_type=membership,
            join_date=joined_before - timedelta(days=random.randint(1, 1500)),
            phone=self.fake.phone_number(),
        )

