from mathref.index import MarkdownOutlineParser, SectionBuilder, markdown_import, split_lines
from mathref.models.outline import HeadingRecord


def _import(text: str, path: str = "notes/Sample.md"):
    return markdown_import(path, text, MarkdownOutlineParser().parse(text))


def test_single_heading_document():
    page = _import("# Title\n\nSome text\n")

    assert len(page.sections) == 1
    section = page.sections[0]
    assert (section.ordinal, section.level, section.title) == (1, 1, "Title")
    assert (section.position.start, section.position.end) == (0, 2)
    assert [block.type_tag for block in page.blocks] == ["paragraph"]
    assert page.links == []


def test_leading_content_gets_implicit_section():
    page = _import("intro\n\n# H1\nbody\n")

    implicit, heading = page.sections
    assert implicit.implicit
    assert (implicit.ordinal, implicit.level, implicit.title) == (0, 1, "Sample")
    assert (implicit.position.start, implicit.position.end) == (0, 1)
    assert (heading.ordinal, heading.title) == (1, "H1")
    assert (heading.position.start, heading.position.end) == (2, 3)


def test_blank_documents_have_no_sections():
    assert _import("").sections == []
    assert _import("\n\n  \n").sections == []


def test_document_without_headings_is_one_implicit_section():
    page = _import("just text\nmore text\n")

    assert len(page.sections) == 1
    assert page.sections[0].ordinal == 0
    assert (page.sections[0].position.start, page.sections[0].position.end) == (0, 1)


def test_sections_partition_the_document():
    text = "preface\n# A\na\n## B\nb\n\n# C\n"
    lines = split_lines(text)
    sections = SectionBuilder().build(
        [HeadingRecord("A", 1, 1), HeadingRecord("B", 2, 3), HeadingRecord("C", 1, 6)], lines, "Doc"
    )

    covered = [line for section in sections for line in range(section.position.start, section.position.end + 1)]
    assert covered == list(range(len(lines)))
    assert [section.ordinal for section in sections] == [0, 1, 2, 3]
    assert sections[2].level == 2


def test_blank_lines_before_first_heading_are_not_a_section():
    page = _import("\n\n# Late\ntext\n")

    assert [section.title for section in page.sections] == ["Late"]
