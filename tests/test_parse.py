from mathref.index.parse import (
    document_title,
    extract_manual_tag,
    parse_latex_comment,
    parse_markdown_comment,
    parse_yaml_like,
    read_block_id,
    read_latex_metadata,
    read_theorem_callout_settings,
    strip_quote_prefix,
    trim_math_text,
)


def test_latex_comment_skips_escaped_percent():
    comment = parse_latex_comment(r"50\% of x % label: half")
    assert comment.non_comment == r"50\% of x "
    assert comment.comment == "label: half"

    assert parse_latex_comment(r"a \\% c").comment == "c"
    assert parse_latex_comment("x + y").comment is None


def test_yaml_like_later_keys_win():
    parsed = parse_yaml_like("label: eq-1\ndisplay: Euler\nnot a pair\nlabel: eq-2")
    assert parsed == {"label": "eq-2", "display": "Euler"}


def test_latex_metadata_from_comments():
    metadata = read_latex_metadata("e^{i\\pi} + 1 = 0 % label: euler\n% display: Euler identity")
    assert metadata == {"label": "euler", "display": "Euler identity"}


def test_markdown_comment_lines():
    assert parse_markdown_comment("a %% label: x\nmain %% b %%c%%") == [" label: x", "main ", "c"]
    assert parse_markdown_comment("no comments") == []


def test_manual_tags():
    assert extract_manual_tag(r"x = 1 \tag{3.1}") == "3.1"
    assert extract_manual_tag(r"x \tag*{A} \tag{B}") == "A"
    assert extract_manual_tag(r"x \tag{\star{1}}") == r"\star{1}"
    assert extract_manual_tag("x = 1") is None


def test_math_text_trimming_and_block_ids():
    assert trim_math_text("$$\n x^2 \n$$ ^sq") == "x^2"
    assert trim_math_text("$$a$$") == "a"
    assert read_block_id("$$ ^eq-1") == "eq-1"
    assert read_block_id("price^2") is None
    assert strip_quote_prefix(">  > x") == " > x"


def test_theorem_callout_settings():
    settings = read_theorem_callout_settings("> [!lemma|2.1]- Key lemma")
    assert settings is not None
    assert (settings.kind, settings.number, settings.fold, settings.title) == ("lemma", "2.1", "-", "Key lemma")
    assert settings.legacy is False

    short = read_theorem_callout_settings("> [!thm]")
    assert short is not None
    assert (short.kind, short.number, short.title) == ("theorem", "auto", None)

    assert read_theorem_callout_settings("> [!note] Plain") is None
    assert read_theorem_callout_settings("plain text") is None


def test_example_callouts_can_be_excluded():
    assert read_theorem_callout_settings("> [!example] E").kind == "example"
    assert read_theorem_callout_settings("> [!exm] E", exclude_example=True) is None


def test_legacy_callout_settings():
    settings = read_theorem_callout_settings('> [!math|{"type":"theorem","number":"*","title":"Old"}]')
    assert settings is not None
    assert settings.legacy is True
    assert (settings.kind, settings.number, settings.title) == ("theorem", "*", "Old")

    assert read_theorem_callout_settings("> [!math|{broken]") is None
    assert read_theorem_callout_settings('> [!math|{"type":"example"}]', exclude_example=True) is None


def test_document_title():
    assert document_title("notes/sub/Field Theory.md") == "Field Theory"
    assert document_title("a\\b.md") == "b"
