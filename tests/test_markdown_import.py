from mathref.index import MarkdownOutlineParser, PageAssembler, PageAssemblerConfig, markdown_import
from mathref.models.block import EquationBlock, GenericBlock, TheoremCalloutBlock
from mathref.models.link import Link, SubpathType

THEOREM_DOC = "\n".join(
    [
        "# Results",
        "",
        "> [!theorem] Main",
        "> First",
        "> $$a = b$$",
        "> and",
        "> $$",
        "> c = d \\tag{2}",
        "> $$",
        "> $$e = f$$",
        "> %% label: thm-main %%",
        "",
        "$$",
        "x^2 % label: sq",
        "$$ ^sq-eq",
        "",
    ]
)

LINK_DOC = "\n".join(
    [
        "# Intro",
        "See [[Other#Part|there]].",
        "",
        "- item [[Target]]",
        "- another [[Target]]",
        "",
        "## Next [[Heading Link]]",
        "Body text [[Other#Part|there]]",
        "",
    ]
)


def _import(text: str, path: str = "notes/results.md", **kwargs):
    return markdown_import(path, text, MarkdownOutlineParser().parse(text), **kwargs)


def test_callout_then_nested_equations_take_consecutive_ordinals():
    page = _import(THEOREM_DOC)

    assert [block.ordinal for block in page.blocks] == [1, 2, 3, 4, 5]
    callout = page.blocks[0]
    assert isinstance(callout, TheoremCalloutBlock)
    assert callout.settings.kind == "theorem"
    assert callout.settings.title == "Main"
    assert callout.label == "thm-main"
    assert callout.main is False
    assert [eq.ordinal for eq in callout.equations] == [2, 3, 4]

    spans = [(eq.position.start, eq.position.end) for eq in callout.equations]
    assert spans == [(4, 4), (6, 8), (9, 9)]
    assert [eq.math_text for eq in callout.equations] == ["a = b", "c = d \\tag{2}", "e = f"]
    assert callout.equations[1].manual_tag == "2"
    for eq in callout.equations:
        assert THEOREM_DOC[eq.offsets.start : eq.offsets.end].startswith("$$")
        assert THEOREM_DOC[eq.offsets.start : eq.offsets.end].endswith("$$")


def test_top_level_equation_metadata():
    page = _import(THEOREM_DOC)

    equation = page.blocks[-1]
    assert isinstance(equation, EquationBlock)
    assert not equation.nested
    assert equation.math_text == "x^2 % label: sq"
    assert equation.label == "sq"
    assert equation.block_id == "sq-eq"
    assert (equation.position.start, equation.position.end) == (12, 14)
    assert page.get_block_by_id("^sq-eq") is equation


def test_every_block_lands_in_its_covering_section():
    page = _import(THEOREM_DOC)

    assert len(page.sections) == 1
    assert [block.ordinal for block in page.sections[0].blocks] == [1, 2, 3, 4, 5]
    for block in page.iter_section_blocks():
        assert page.sections[0].position.covers(block.position)


def test_bare_main_and_example_exclusion():
    text = "> [!example] Demo\n> %% main %%\n> $$x$$\n"

    page = _import(text)
    assert isinstance(page.blocks[0], TheoremCalloutBlock)
    assert page.blocks[0].main is True

    excluded = _import(text, exclude_example=True)
    assert [type(block) for block in excluded.blocks] == [GenericBlock]
    assert excluded.blocks[0].block_type == "callout"


def test_line_and_offset_lookups_prefer_nested_equations():
    page = _import(THEOREM_DOC)

    assert page.get_block_by_line_number(7).ordinal == 3
    assert page.get_block_by_line_number(5).ordinal == 1
    assert page.get_block_by_line_number(11) is None
    assert page.get_block_by_line_number(13).ordinal == 5

    inside_third = THEOREM_DOC.index("e = f")
    assert page.get_block_by_offset(inside_third).ordinal == 4
    assert page.get_block_by_offset(THEOREM_DOC.index("First")).ordinal == 1


def test_equations_in_range():
    page = _import(THEOREM_DOC)

    assert [eq.ordinal for eq in page.get_equation_blocks_in_range(2, 10)] == [2, 3, 4]
    assert [eq.ordinal for eq in page.get_equation_blocks_in_range(5, 8)] == [3]
    assert [eq.ordinal for eq in page.get_equation_blocks_in_range(0, 20)] == [2, 3, 4, 5]


def test_reindexing_is_deterministic():
    first = _import(THEOREM_DOC)
    second = _import(THEOREM_DOC)

    assert first.to_json() == second.to_json()


def test_links_are_assigned_to_page_section_and_block():
    page = _import(LINK_DOC)
    other = Link.infer("[[Other#Part|there]]")
    target = Link.infer("[[Target]]")
    heading_link = Link.infer("[[Heading Link]]")

    assert page.links == [other, target, heading_link]
    assert other.subpath_type is SubpathType.HEADING

    intro, following = page.sections
    assert intro.links == [other, target]
    assert following.links == [heading_link, other]

    paragraph, bullet_list, body = page.blocks
    assert paragraph.links == [other]
    assert bullet_list.block_type == "list"
    assert bullet_list.links == [target]
    assert body.links == [heading_link, other]


def test_frontmatter_links_only_reach_the_page():
    text = '---\nrelated: "[[Other]]"\ntags: [a]\n---\n# Head\ntext\n'
    page = _import(text)

    assert len(page.links) == 1
    assert page.links[0].path == "Other"
    assert page.links[0].frontmatter
    assert all(not section.links for section in page.sections)
    assert all(not block.links for block in page.blocks)


def test_assembler_config_sets_implicit_section_level():
    assembler = PageAssembler(PageAssemblerConfig(implicit_section_level=0))
    text = "intro\n# H\n"
    page = assembler.build("a.md", text, MarkdownOutlineParser().parse(text))

    assert page.sections[0].level == 0
