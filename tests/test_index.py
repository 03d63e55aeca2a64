from kinfold.index import RecordIndex
from kinfold.schemas import Member


def test_one_directional_spouse_link_resolves_both_ways():
    index = RecordIndex([Member(id="C", spouse_id="S"), Member(id="S")])
    assert index.spouse(index.get("S")).id == "C"
    assert index.spouse(index.get("C")).id == "S"
    assert index.has_spouse(index.get("S"))


def test_own_declaration_wins_over_reverse_link():
    index = RecordIndex(
        [
            Member(id="A", spouse_id="B"),
            Member(id="B", spouse_id="C"),
            Member(id="C"),
        ]
    )
    assert index.spouse_of["A"] == "B"
    assert index.spouse_of["B"] == "C"
    assert index.spouse_of["C"] == "B"


def test_self_and_dangling_spouse_links_do_not_resolve():
    index = RecordIndex([Member(id="A", spouse_id="A"), Member(id="B", spouse_id="ghost")])
    assert index.spouse(index.get("A")) is None
    assert index.spouse(index.get("B")) is None
    assert index.self_spouse_links == ["A"]
    assert [m.id for m in index.dangling_spouses()] == ["B"]
    assert "A" not in index.spouse_of


def test_children_grouped_in_input_order_and_dangling_parent_is_none():
    index = RecordIndex(
        [
            Member(id="F", generation=1),
            Member(id="b", parent_id="F"),
            Member(id="a", parent_id="F"),
            Member(id="orphan", parent_id="missing"),
        ]
    )
    assert [m.id for m in index.children_of("F")] == ["b", "a"]
    assert index.parent(index.get("orphan")) is None
    assert [m.id for m in index.dangling_parents()] == ["orphan"]
    assert [m.id for m in index.founders()] == ["F"]


def test_duplicate_ids_keep_first_record():
    index = RecordIndex([Member(id="A", first_name="first"), Member(id="A", first_name="second")])
    assert len(index) == 1
    assert index.get("A").first_name == "first"
    assert index.duplicates == ["A"]


def test_parent_cycles_are_detected():
    index = RecordIndex(
        [
            Member(id="A", parent_id="B"),
            Member(id="B", parent_id="A"),
            Member(id="C", parent_id="A"),
        ]
    )
    assert index.parent_cycles() == [["A", "B"]]
    graph = index.parent_graph()
    assert graph.has_edge("A", "C")
    assert graph.number_of_nodes() == 3
