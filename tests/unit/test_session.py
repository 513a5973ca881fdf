import pytest

from pdfmerge.domain.errors import InvalidPermutationError, NotFoundError
from pdfmerge.services.naming import default_output_name
from pdfmerge.services.session_service import MergeSession


@pytest.mark.unit
def test_add_items_preserves_batch_order(make_source) -> None:
    session = MergeSession()
    created = session.add_items([make_source("x.pdf", 1), make_source("y.pdf", 2)])
    session.add_items([make_source("z.pdf", 3)])

    assert [item.display_name for item in session.items] == ["x.pdf", "y.pdf", "z.pdf"]
    assert [item.item_id for item in created] == session.item_ids[:2]


@pytest.mark.unit
def test_reorder_keeps_page_counts(make_source) -> None:
    session = MergeSession()
    x, y, z = session.add_items(
        [make_source("x.pdf", 1), make_source("y.pdf", 2), make_source("z.pdf", 3)]
    )

    session.reorder([z.item_id, x.item_id, y.item_id])

    assert session.items == (z, x, y)
    assert [item.page_count for item in session.items] == [3, 1, 2]


@pytest.mark.unit
@pytest.mark.parametrize("case", ["missing", "duplicate", "foreign"])
def test_reorder_rejects_non_permutations(make_source, case: str) -> None:
    session = MergeSession()
    a, b = session.add_items([make_source("a.pdf", 1), make_source("b.pdf", 1)])
    order = {
        "missing": [a.item_id],
        "duplicate": [a.item_id, a.item_id, b.item_id],
        "foreign": [a.item_id, b.item_id, "nope"],
    }[case]

    with pytest.raises(InvalidPermutationError) as excinfo:
        session.reorder(order)

    error = excinfo.value
    if case == "missing":
        assert error.missing == [b.item_id]
    elif case == "duplicate":
        assert error.duplicates == [a.item_id]
    else:
        assert error.foreign == ["nope"]
    assert session.items == (a, b)


@pytest.mark.unit
def test_total_pages_tracks_add_and_remove(make_source) -> None:
    session = MergeSession()
    session.add_items([make_source("a.pdf", 4), make_source("b.pdf", 6)])
    assert session.total_pages() == 10

    (added,) = session.add_items([make_source("c.pdf", 5)])
    assert session.total_pages() == 15

    session.remove_item(added.item_id)
    assert session.total_pages() == 10


@pytest.mark.unit
def test_remove_keeps_relative_order(make_source) -> None:
    session = MergeSession()
    a, b, c = session.add_items(
        [make_source("a.pdf", 1), make_source("b.pdf", 1), make_source("c.pdf", 1)]
    )
    session.remove_item(b.item_id)
    assert session.items == (a, c)


@pytest.mark.unit
def test_remove_missing_id_raises_not_found(make_source) -> None:
    session = MergeSession()
    session.add_items([make_source("a.pdf", 1)])
    with pytest.raises(NotFoundError) as excinfo:
        session.remove_item("missing")
    assert excinfo.value.item_id == "missing"
    assert len(session) == 1


@pytest.mark.unit
def test_ids_are_unique_across_lifetime(make_source) -> None:
    session = MergeSession()
    seen: set[str] = set()
    for _ in range(50):
        created = session.add_items([make_source("same.pdf", 1), make_source("same.pdf", 1)])
        for item in created:
            assert item.item_id not in seen
            seen.add(item.item_id)
        session.remove_item(created[0].item_id)
    assert len(seen) == 100


@pytest.mark.unit
def test_move_item_reorders_by_id(make_source) -> None:
    session = MergeSession()
    a, b, c = session.add_items(
        [make_source("a.pdf", 1), make_source("b.pdf", 1), make_source("c.pdf", 1)]
    )
    session.move_item(c.item_id, 0)
    assert session.items == (c, a, b)
    session.move_item(c.item_id, 99)
    assert session.items == (a, b, c)


@pytest.mark.unit
def test_items_snapshot_is_not_aliased(make_source) -> None:
    session = MergeSession()
    session.add_items([make_source("a.pdf", 1)])
    snapshot = session.items
    session.add_items([make_source("b.pdf", 1)])
    assert len(snapshot) == 1


@pytest.mark.unit
@pytest.mark.parametrize(
    ("names", "expected"),
    [
        ([], "merged.pdf"),
        (["Report.pdf"], "Report_merged.pdf"),
        (["report.PDF"], "report_merged.pdf"),
        (["notes.txt", "b.pdf"], "notes.txt_merged.pdf"),
        (["archive.pdf.pdf"], "archive.pdf_merged.pdf"),
    ],
)
def test_default_output_name(make_source, names: list[str], expected: str) -> None:
    session = MergeSession()
    session.add_items([make_source(name, 1) for name in names])
    assert session.default_output_name() == expected
    assert default_output_name(session.items) == expected


@pytest.mark.unit
def test_output_name_follows_first_item_until_overridden(make_source) -> None:
    session = MergeSession()
    assert session.output_name == "merged.pdf"

    a, b = session.add_items([make_source("Alpha.pdf", 1), make_source("Beta.pdf", 1)])
    assert session.output_name == "Alpha_merged.pdf"

    session.reorder([b.item_id, a.item_id])
    assert session.output_name == "Beta_merged.pdf"

    session.set_output_name("custom.pdf")
    session.reorder([a.item_id, b.item_id])
    assert session.output_name == "custom.pdf"
    assert session.effective_output_name() == "custom.pdf"

    session.set_output_name("   ")
    assert session.output_name == "Alpha_merged.pdf"
    session.remove_item(a.item_id)
    assert session.output_name == "Beta_merged.pdf"


@pytest.mark.unit
def test_clear_resets_items_and_name(make_source) -> None:
    session = MergeSession()
    session.add_items([make_source("a.pdf", 2)])
    session.set_output_name("keep.pdf")
    session.clear()
    assert session.items == ()
    assert session.total_pages() == 0
    assert session.output_name == "merged.pdf"
