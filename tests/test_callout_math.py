from mathref.index.callout_math import find_display_math_in_callout


def test_nested_math_positions_are_absolute():
    block = "> [!thm]\n> $$x$$\n> $$\n> y\n> $$"
    found = find_display_math_in_callout(block, start_line=10, start_offset=100)

    assert [item.math_text for item in found] == ["x", "y"]

    first, second = found
    assert (first.start_line, first.end_line) == (11, 11)
    assert (first.start_offset, first.end_offset) == (111, 116)
    assert (second.start_line, second.end_line) == (12, 14)
    assert second.start_offset == 119
    assert second.end_offset == 100 + len(block)


def test_unterminated_delimiter_ends_scan():
    found = find_display_math_in_callout("> $$a$$\n> $$ b", start_line=0, start_offset=0)
    assert [item.math_text for item in found] == ["a"]


def test_no_math():
    assert find_display_math_in_callout("> [!lemma]\n> text", 0, 0) == []
