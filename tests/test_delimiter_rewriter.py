import pytest
from delimiter_rewriter import has_explicit_delimiters, rewrite_explicit_delimiters


def check_rewrite(input_text, expected_text):
    output = rewrite_explicit_delimiters(input_text)
    assert output == expected_text, f"\n=== ACTUAL OUTPUT ===\n{output!r}\n=== EXPECTED OUTPUT ===\n{expected_text!r}\n"


@pytest.mark.parametrize("content", ["x^2", "  a + b ", "\\frac{1}{2}", " \\text{sample}"])
def test_inline_span_is_trimmed(content):
    check_rewrite("\\(" + content + "\\)", "$" + content.strip() + "$")


@pytest.mark.parametrize("content", ["a", " x = 1 ", "\na^2 + b^2 = c^2\n", "\n  \\sum_i x_i\n\n"])
def test_display_span_uses_blank_line_template(content):
    check_rewrite("\\[" + content + "\\]", "\n$$\n" + content.strip() + "\n$$\n")


def test_inline_spans_are_not_merged():
    check_rewrite("\\(a\\)\\(b\\)", "$a$$b$")


def test_two_spans_in_prose():
    check_rewrite(
        "Let \\( x \\) and \\(y_1\\) be reals.",
        "Let $x$ and $y_1$ be reals."
    )


def test_display_span_inside_paragraph():
    check_rewrite(
        "Quadratic formula:\n\\[\nx = \\frac{-b \\pm \\sqrt{b^2 - 4ac}}{2a}\n\\]\nas usual.",
        "Quadratic formula:\n\n$$\nx = \\frac{-b \\pm \\sqrt{b^2 - 4ac}}{2a}\n$$\n\nas usual."
    )


def test_two_display_spans_stay_separate():
    check_rewrite("\\[a\\] and \\[b\\]", "\n$$\na\n$$\n and \n$$\nb\n$$\n")


def test_unmatched_open_marker_is_left_alone():
    check_rewrite("costs \\( 5 dollars", "costs \\( 5 dollars")
    check_rewrite("see \\[ 3 ]", "see \\[ 3 ]")


def test_inline_span_does_not_cross_lines():
    check_rewrite("\\(a\nb\\)", "\\(a\nb\\)")


def test_rewrite_is_idempotent():
    once = rewrite_explicit_delimiters("Let \\(x\\) be\n\\[x^2 = 4\\]\nthen.")
    assert not has_explicit_delimiters(once)
    assert rewrite_explicit_delimiters(once) == once


@pytest.mark.parametrize("text,expected", [
    ("\\(x\\)", True),
    ("\\[x", True),
    ("only \\( here", True),
    ("$x$ and $$y$$", False),
    ("a \\) b \\]", False),
    ("", False),
])
def test_has_explicit_delimiters(text, expected):
    assert has_explicit_delimiters(text) is expected


def test_inline_span_does_not_cross_carriage_return():
    check_rewrite("\\(a\rb\\)", "\\(a\rb\\)")


def test_crlf_around_spans_is_kept():
    check_rewrite("See \\(x\\)\r\nend\r\n", "See $x$\r\nend\r\n")
