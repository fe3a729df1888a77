from mathref.models.block import (
    BlockKind,
    EquationBlock,
    GenericBlock,
    TheoremCalloutBlock,
    TheoremCalloutSettings,
    block_from_json,
    is_equation,
    is_theorem,
)
from mathref.models.link import Link, SubpathType, add_link, normalize_path
from mathref.models.page import MarkdownPage, page_from_record
from mathref.models.position import Span
from mathref.models.section import MarkdownSection


def test_link_inference():
    link = Link.infer("[[Notes/Field#^eq-1|Euler]]")
    assert (link.path, link.subpath, link.subpath_type, link.display) == ("Notes/Field", "eq-1", SubpathType.BLOCK, "Euler")
    assert not link.embed

    embed = Link.infer("![[Field#Section A]]")
    assert embed.embed
    assert (embed.subpath, embed.subpath_type) == ("Section A", SubpathType.HEADING)

    bare = Link.infer(" ./dir//Field ")
    assert bare.path == "dir/Field"
    assert bare.subpath is None


def test_link_equality_is_structural():
    assert Link.infer("[[A|x]]") == Link.infer("[[A|x]]")
    assert Link.infer("[[A|x]]") != Link.infer("[[A|y]]")
    assert Link.infer("[[A]]") != Link.infer("![[A]]")
    assert Link.infer("[[A]]", frontmatter=True) == Link.infer("[[A|alias]]")

    links: list = []
    assert add_link(links, Link.infer("[[A#B]]"))
    assert not add_link(links, Link.infer("A#B"))
    assert add_link(links, Link.infer("[[A#B|shown]]"))
    assert len(links) == 2


def test_link_json_round_trip():
    link = Link.infer("![[A#^b|c]]")
    data = link.to_json()

    assert data == {
        "path": "A",
        "subpath": "b",
        "subpath_type": "block",
        "embed": True,
        "display": "c",
        "frontmatter": False,
    }
    assert Link.from_json(data) == link
    assert normalize_path("a\\b") == "a/b"


def test_block_serialization_shapes():
    equation = EquationBlock(
        ordinal=2,
        position=Span(3, 3),
        offsets=Span(20, 30),
        math_text="x",
        manual_tag="1",
        label="eq",
        container_start=2,
    )
    callout = TheoremCalloutBlock(
        ordinal=1,
        position=Span(2, 4),
        offsets=Span(10, 40),
        settings=TheoremCalloutSettings(kind="lemma", number="3"),
        main=True,
        equations=[equation],
    )
    generic = GenericBlock(ordinal=3, position=Span(6, 6), offsets=Span(42, 50), block_type="list")

    assert set(generic.to_json()) == {"type", "ordinal", "position", "offsets", "block_id", "links"}
    assert generic.to_json()["type"] == "list"
    assert equation.to_json()["type"] == "equation"
    assert {"math_text", "manual_tag", "label", "display"} <= set(equation.to_json())
    callout_json = callout.to_json()
    assert callout_json["type"] == "theorem"
    assert callout_json["equations"] == [2]
    assert callout_json["settings"]["kind"] == "lemma"
    assert callout_json["legacy"] is False

    assert is_equation(block_from_json(equation.to_json()))
    assert is_theorem(block_from_json(callout_json))
    assert block_from_json(generic.to_json()) == generic


def test_page_record_relinks_nested_equations():
    equation = EquationBlock(ordinal=2, position=Span(2, 2), offsets=Span(12, 20), math_text="x", container_start=1)
    callout = TheoremCalloutBlock(
        ordinal=1,
        position=Span(1, 2),
        offsets=Span(4, 20),
        settings=TheoremCalloutSettings(kind="theorem"),
        equations=[equation],
    )
    section = MarkdownSection(ordinal=1, title="T", level=1, position=Span(0, 2), blocks=[callout, equation])
    page = MarkdownPage(path="t.md", position=Span(0, 2), sections=[section], blocks=[callout, equation])

    record = page.to_json()
    assert set(record) == {"path", "links", "sections", "extension", "position", "line_starts"}

    restored = page_from_record(record)
    restored_callout = restored.get_block_by_ordinal(1)
    assert isinstance(restored_callout, TheoremCalloutBlock)
    assert restored_callout.equations[0].nested
    assert restored.get_block_by_line_number(2).ordinal == 2
    assert restored.get_section_by_line_number(1).title == "T"
    assert restored.find_section(" t ").title == "T"


def test_frontmatter_flag_survives_serialization():
    link = Link.infer("[[A]]", frontmatter=True)
    restored = Link.from_json(link.to_json())

    assert restored.frontmatter
    assert restored == Link.infer("[[A|alias]]")


def test_block_kind_drives_dispatch():
    equation = EquationBlock(ordinal=1, position=Span(0, 0), offsets=Span(0, 5), math_text="x")
    generic = GenericBlock(ordinal=2, position=Span(1, 1), offsets=Span(6, 9), block_type="equation-like")

    assert equation.kind is BlockKind.EQUATION
    assert equation.type_tag == "equation"
    assert is_equation(equation) and not is_theorem(equation)
    assert not is_equation(generic)
    assert type(block_from_json(generic.to_json())) is GenericBlock


def test_offset_spans_are_end_exclusive():
    block = GenericBlock(ordinal=1, position=Span(0, 0), offsets=Span(0, 4))
    after = GenericBlock(ordinal=2, position=Span(2, 2), offsets=Span(6, 9))
    page = MarkdownPage(path="p.md", position=Span(0, 2), blocks=[block, after])

    assert page.get_block_by_offset(3) is block
    assert page.get_block_by_offset(4) is None
    assert page.get_block_by_offset(9) is None
    assert Span(0, 4).contains_offset(0) and not Span(0, 4).contains_offset(4)
