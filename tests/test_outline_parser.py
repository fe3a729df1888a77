from mathref.index import MarkdownOutlineParser, OutlineParserConfig

SAMPLE = "\n".join(
    [
        "---",
        "title: T",
        "---",
        "# H",
        "",
        "```py",
        "$$ not math",
        "```",
        "",
        "$$",
        "x",
        "$$",
        "",
        "> quote",
        "",
        "> [!thm] T",
        "> body",
        "",
        "- a",
        "- b",
        "",
        "| a |",
        "| b |",
        "",
        "---",
        "",
        "para ^pid",
        "",
    ]
)


def test_block_types_and_spans():
    outline = MarkdownOutlineParser().parse(SAMPLE)

    summary = [(block.type, block.start_line, block.end_line) for block in outline.blocks]
    assert summary == [
        ("yaml", 0, 2),
        ("heading", 3, 3),
        ("code", 5, 7),
        ("math", 9, 11),
        ("blockquote", 13, 13),
        ("callout", 15, 16),
        ("list", 18, 19),
        ("table", 21, 22),
        ("thematicBreak", 24, 24),
        ("paragraph", 26, 26),
    ]
    assert outline.blocks[-1].block_id == "pid"
    assert [(heading.text, heading.level, heading.start_line) for heading in outline.headings] == [("H", 1, 3)]


def test_offsets_match_source():
    outline = MarkdownOutlineParser().parse(SAMPLE)
    math = next(block for block in outline.blocks if block.type == "math")

    assert SAMPLE[math.start_offset : math.end_offset] == "$$\nx\n$$"


def test_standalone_block_id_is_absorbed():
    text = "$$\nx\n$$\n^eq-a\n\nafter\n"
    outline = MarkdownOutlineParser().parse(text)

    math, paragraph = outline.blocks
    assert (math.start_line, math.end_line, math.block_id) == (0, 3, "eq-a")
    assert paragraph.start_line == 5


def test_single_line_display_math():
    outline = MarkdownOutlineParser().parse("$$x = 1$$\ntext\n")
    assert [(block.type, block.start_line, block.end_line) for block in outline.blocks][0] == ("math", 0, 0)


def test_link_occurrences():
    text = "See [[A#B|alias]] and ![[C]] and [t](D%20E.md) and [x](https://e.com) and `[[code]]`\n"
    outline = MarkdownOutlineParser().parse(text)

    found = [(link.target, link.display, link.start_line) for link in outline.links]
    assert found == [("A#B", "alias", 0), ("!C", None, 0), ("D E.md", "t", 0)]


def test_frontmatter_can_be_ignored():
    text = "---\nlink: '[[X]]'\n---\nbody\n"

    parsed = MarkdownOutlineParser().parse(text)
    assert [link.target for link in parsed.frontmatter_links] == ["[[X]]"]

    raw = MarkdownOutlineParser(OutlineParserConfig(parse_frontmatter=False)).parse(text)
    assert raw.frontmatter_links == []
    assert raw.blocks[0].type == "thematicBreak"


def test_heading_level_limit():
    outline = MarkdownOutlineParser(OutlineParserConfig(max_heading_level=2)).parse("# A\n### B\n")
    assert [heading.text for heading in outline.headings] == ["A"]
    assert outline.blocks[-1].type == "paragraph"


def test_get_many_yields_per_document():
    parser = MarkdownOutlineParser()
    results = dict(parser.get_many([("a.md", "# A\n"), ("b.md", "text\n")]))

    assert results["a.md"].headings[0].text == "A"
    assert results["b.md"].headings == []
