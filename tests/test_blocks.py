"""Tests for block boundary scanning and complexity estimation."""

import textwrap

from blocks import (
    JS_SYNTAX,
    RUBY_SYNTAX,
    Opener,
    estimate_complexity,
    find_block_end,
    is_high_complexity,
    scan_blocks,
    split_lines,
)


def _lines(code: str) -> list[str]:
    return split_lines(textwrap.dedent(code))


# ---------------------------------------------------------------------------
# split_lines / Opener
# ---------------------------------------------------------------------------


def test_split_lines_drops_trailing_newline_only():
    assert split_lines("a\nb\n") == ["a", "b"]
    assert split_lines("a\n\n") == ["a", ""]
    assert split_lines("a\r\nb") == ["a", "b"]
    assert split_lines("") == []


def test_opener_closers():
    assert Opener.BRACE.closer == "}"
    assert Opener.DEF.closer == "end"
    assert Opener.DO.closer == "end"


# ---------------------------------------------------------------------------
# Ruby
# ---------------------------------------------------------------------------


def test_nested_ruby_block_ends_at_matching_end():
    lines = _lines("""\
        def outer
          if ready
            [1, 2].each do |i|
              puts i
            end
          end
        end
        puts "after"
    """)
    assert find_block_end(lines, 0, RUBY_SYNTAX) == 6


def test_unterminated_block_ends_at_last_line():
    lines = _lines("""\
        def broken
          if ready
            go
    """)
    assert find_block_end(lines, 0, RUBY_SYNTAX) == len(lines) - 1

    blocks = scan_blocks("\n".join(lines), "ruby")
    assert [(b.name, b.start_line, b.end_line) for b in blocks] == [("broken", 1, 3)]


def test_modifier_conditionals_do_not_open_blocks():
    code = textwrap.dedent("""\
        def check(x)
          return if x.nil?
          x + 1 unless x.zero?
        end

        def other
        end
    """)
    blocks = scan_blocks(code, "ruby")
    assert [(b.name, b.start_line, b.end_line) for b in blocks] == [
        ("check", 1, 4),
        ("other", 6, 7),
    ]


def test_conditional_assignment_opens_block():
    code = textwrap.dedent("""\
        def label
          text = if active
            "on"
          else
            "off"
          end
          text
        end
    """)
    blocks = scan_blocks(code, "ruby")
    assert blocks[0].end_line == 8


def test_endless_method_is_single_line():
    code = textwrap.dedent("""\
        def double(x) = x * 2
        def triple(x)
          x * 3
        end
    """)
    blocks = scan_blocks(code, "ruby")
    assert [(b.name, b.start_line, b.end_line) for b in blocks] == [
        ("double", 1, 1),
        ("triple", 2, 4),
    ]


def test_setter_method_is_not_endless():
    code = textwrap.dedent("""\
        def name=(value)
          @name = value
        end
    """)
    blocks = scan_blocks(code, "ruby")
    assert [(b.name, b.end_line) for b in blocks] == [("name=", 3)]


def test_class_methods_and_visibility_prefixes():
    code = textwrap.dedent("""\
        class Report
          def self.build
            new
          end

          private def secret
            42
          end
        end
    """)
    names = [b.name for b in scan_blocks(code, "ruby")]
    assert names == ["build", "secret"]


def test_block_line_count_is_inclusive():
    code = "def a\n  1\nend\n"
    (block,) = scan_blocks(code, "ruby")
    assert block.line_count == 3
    assert block.body == code.rstrip("\n")


# ---------------------------------------------------------------------------
# JavaScript
# ---------------------------------------------------------------------------


def test_js_nested_braces():
    lines = _lines("""\
        function a() {
          if (x) {
            y();
          }
        }
        const b = 1;
    """)
    assert find_block_end(lines, 0, JS_SYNTAX) == 4


def test_js_unit_forms():
    code = textwrap.dedent("""\
        function foo() {
          return 1;
        }
        const bar = (x) => {
          return x;
        };
        const inc = (x) => x + 1;
        export async function load(url) {
          if (url) {
            return fetch(url);
          }
        }
    """)
    blocks = scan_blocks(code, "javascript")
    assert [(b.name, b.start_line, b.end_line) for b in blocks] == [
        ("foo", 1, 3),
        ("bar", 4, 6),
        ("inc", 7, 7),
        ("load", 8, 12),
    ]


def test_wrapped_arrow_ends_with_its_statement():
    code = textwrap.dedent("""\
        const total = (items) =>
          items.reduce((a, b) => a + b, 0);

        function render(x) {
          return x;
        }
    """)
    blocks = scan_blocks(code, "javascript")
    assert [(b.name, b.start_line, b.end_line) for b in blocks] == [
        ("total", 1, 2),
        ("render", 4, 6),
    ]


def test_wrapped_arrow_without_semicolon_stops_before_next_unit():
    code = textwrap.dedent("""\
        const double = (x) =>
          x * 2

        function render(x) {
          return x;
        }
    """)
    blocks = scan_blocks(code, "javascript")
    assert [(b.name, b.start_line, b.end_line) for b in blocks] == [
        ("double", 1, 2),
        ("render", 4, 6),
    ]


def test_wrapped_arrow_with_callback_body():
    code = textwrap.dedent("""\
        const names = (users) =>
          users.map((u) => {
            return u.name;
          });
        const none = () => null;
    """)
    blocks = scan_blocks(code, "javascript")
    assert [(b.name, b.start_line, b.end_line) for b in blocks] == [
        ("names", 1, 4),
        ("none", 5, 5),
    ]


def test_control_keywords_are_not_units():
    code = textwrap.dedent("""\
        function run(items) {
          for (const i of items) {
            if (i) {
              go(i);
            }
          }
        }
    """)
    assert [b.name for b in scan_blocks(code, "javascript")] == ["run"]


def test_unknown_tag_has_no_blocks():
    assert scan_blocks("type Query { a: Int }", "graphql") == []


# ---------------------------------------------------------------------------
# Complexity
# ---------------------------------------------------------------------------


def test_complexity_counts_branches_and_operators():
    assert estimate_complexity("x = 1") == 1
    assert estimate_complexity("if a && b\nelsif c || d\nend") == 5
    assert estimate_complexity(
        "if (a && b) { x() } else if (c || d) { y() }", "javascript"
    ) == 5


def test_complexity_ignores_predicate_method_names():
    assert estimate_complexity("list.for?\nvalue.if!") == 1


def test_high_complexity_threshold_is_exclusive():
    assert not is_high_complexity(10)
    assert is_high_complexity(11)
    assert is_high_complexity(6, threshold=5)
