from mathref.index import MarkdownOutlineParser, markdown_import
from mathref.models.block import TheoremCalloutBlock
from mathref.storage import SQLiteIndexConfig, SQLiteIndexStore

TEXT = "# Facts\n\n> [!thm] Pythagoras\n> $$a^2 + b^2 = c^2 \\tag{P}$$\n\n$$\ne = mc^2 % label: energy\n$$ ^mass\n"


def _page(path: str = "physics.md"):
    return markdown_import(path, TEXT, MarkdownOutlineParser().parse(TEXT))


def test_upsert_and_load_round_trip(tmp_path):
    store = SQLiteIndexStore(SQLiteIndexConfig(db_path=tmp_path / "index" / "mathref.db"))
    store.initialize()
    page = _page()

    store.upsert_page(page)
    loaded = store.load_page("physics.md")

    assert loaded is not None
    assert loaded.to_json() == page.to_json()
    callout = loaded.blocks[0]
    assert isinstance(callout, TheoremCalloutBlock)
    assert [eq.ordinal for eq in callout.equations] == [2]
    assert loaded.get_block_by_id("mass").ordinal == 3
    assert loaded.get_block_by_line_number(3).ordinal == 2
    store.close()


def test_equation_rows_and_search(tmp_path):
    store = SQLiteIndexStore(SQLiteIndexConfig(db_path=tmp_path / "mathref.db"))
    store.initialize()
    store.upsert_page(_page("a.md"))
    store.upsert_page(_page("b.md"))

    rows = store.find_equations(label="energy")
    assert [(row["path"], row["ordinal"]) for row in rows] == [("a.md", 3), ("b.md", 3)]
    assert [row["manual_tag"] for row in store.find_equations(path="a.md")] == ["P", None]

    hits = store.search_equations("mc")
    assert {row["path"] for row in hits} == {"a.md", "b.md"}
    assert store.search_equations("%%") == []

    store.upsert_page(_page("a.md"))
    assert len(store.find_equations(path="a.md")) == 2
    store.close()


def test_delete_and_clear(tmp_path):
    store = SQLiteIndexStore(SQLiteIndexConfig(db_path=tmp_path / "mathref.db", enable_wal=False))
    store.initialize()
    store.upsert_page(_page("a.md"))
    store.upsert_page(_page("b.md"))

    store.delete_page("a.md")
    assert store.iter_paths() == ["b.md"]
    assert store.fetch_record("a.md") is None

    store.clear_all()
    assert store.iter_paths() == []
    assert store.find_equations() == []
    store.close()
