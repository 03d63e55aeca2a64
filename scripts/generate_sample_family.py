"""Generate an illustrative family snapshot and its layout without network access."""

from __future__ import annotations

import argparse
import os
from typing import List

from kinfold.api import run_layout
from kinfold.schemas import Member, Registry
from kinfold.store import write_records

OUT = os.path.join("out", "sample_family")

BRANCH_LABELS = {1: "Kanda", 2: "Nagata", 3: "Katayama"}


def build_sample() -> List[Member]:
    founder = Member(
        id="founder-yamada-taro",
        last_name="Yamada",
        first_name="Taro",
        registry=Registry.DECEASED,
        generation=1,
        birth_date="1920-01-01",
        passed_at="2000-12-31",
        spouse_id="yamada-hana",
    )
    members = [
        founder,
        Member(id="yamada-hana", last_name="Yamada", first_name="Hana", registry=Registry.DECEASED, generation=1),
    ]

    def add(member_id, last, first, generation, branch, parent, birth, spouse=None, registry=Registry.LIVING):
        members.append(
            Member(
                id=member_id,
                last_name=last,
                first_name=first,
                registry=registry,
                generation=generation,
                branch_id=branch,
                parent_id=parent,
                spouse_id=spouse,
                birth_date=birth,
            )
        )

    add("kanda-kazuko", "Kanda", "Kazuko", 2, 1, founder.id, "1945-03-02", spouse="kanda-ichiro")
    add("kanda-ichiro", "Kanda", "Ichiro", 2, 1, None, "1941-07-19", registry=Registry.DECEASED)
    add("kanda-ken", "Kanda", "Ken", 3, 1, "kanda-kazuko", "1970-05-05")
    add("kanda-yui", "Kanda", "Yui", 3, 1, "kanda-ichiro", "1973-11-30")
    add("nagata-jiro", "Nagata", "Jiro", 2, 2, founder.id, "1948-09-12", spouse="nagata-sachiko")
    add("nagata-sachiko", "Nagata", "Sachiko", 2, 2, None, "1950-01-01")
    add("nagata-emi", "Nagata", "Emi", 3, 2, "nagata-jiro", "1975-04-01", spouse="nagata-takeshi")
    add("nagata-takeshi", "Nagata", "Takeshi", 3, 2, None, "1972-02-14")
    add("nagata-sora", "Nagata", "Sora", 4, 2, "nagata-emi", "2005-08-08")
    add("katayama-saburo", "Katayama", "Saburo", 2, 3, founder.id, "1952-12-24")
    return members


def main() -> None:
    parser = argparse.ArgumentParser(description="Write a sample family snapshot and layout")
    parser.add_argument("--out", default=OUT)
    parser.add_argument("--expand-all", action="store_true")
    args = parser.parse_args()

    members = build_sample()
    write_records(members, os.path.join(args.out, "members.json"))
    run_layout(members=members, out_dir=args.out, expand_all=args.expand_all, labels=BRANCH_LABELS)


if __name__ == "__main__":
    main()
