"""
Tests for argument parsing and the command-line entry point.
"""

import io

import pytest

from htmlselect import ArgumentError, Config
from htmlselect.__main__ import main, parse_arguments


class TestParseArguments:
    def test_selector_only(self):
        assert parse_arguments(["-s", ".x"]) == Config(css_selector=".x")

    def test_all_flags(self):
        config = parse_arguments(["-i", "in.html", "-s", "div > p", "-o", "out.html"])
        assert config == Config(css_selector="div > p", input_file="in.html", output_file="out.html")

    def test_repeated_flag_keeps_last_value(self):
        assert parse_arguments(["-s", "a", "-s", "b"]).css_selector == "b"

    def test_selector_is_required(self):
        with pytest.raises(ArgumentError) as excinfo:
            parse_arguments([])
        assert str(excinfo.value) == "CSS selector is required. Use -s option followed by a selector."

    def test_selector_is_required_with_other_flags(self):
        with pytest.raises(ArgumentError) as excinfo:
            parse_arguments(["-i", "in.html"])
        assert excinfo.value.message == "CSS selector is required. Use -s option followed by a selector."

    @pytest.mark.parametrize(
        ("argv", "message"),
        [
            (["-s"], "Expected CSS selector after -s"),
            (["-i"], "Expected input file name after -i"),
            (["-s", "p", "-o"], "Expected output file name after -o"),
        ],
    )
    def test_flag_without_value(self, argv, message):
        with pytest.raises(ArgumentError) as excinfo:
            parse_arguments(argv)
        assert str(excinfo.value) == message

    @pytest.mark.parametrize(
        ("argv", "token"),
        [
            (["-s", "p", "-y"], "-y"),
            (["-s", "p", "extra"], "extra"),
            (["-s", "p", "-h"], "-h"),
            (["--selector", "p"], "--selector"),
            (["-s.x"], "-s.x"),
            (["-sa"], "-sa"),
            (["-s", "p", "-ifile.html"], "-ifile.html"),
        ],
    )
    def test_unexpected_argument(self, argv, token):
        with pytest.raises(ArgumentError) as excinfo:
            parse_arguments(argv)
        assert str(excinfo.value) == f"Unexpected argument: {token}"

    def test_selector_starting_with_hyphen(self):
        assert parse_arguments(["-s", "-webkit-box"]).css_selector == "-webkit-box"

    def test_flag_value_is_taken_verbatim(self):
        config = parse_arguments(["-s", "p", "-i", "-o"])
        assert config == Config(css_selector="p", input_file="-o")

    def test_flag_as_selector_value(self):
        assert parse_arguments(["-s", "-s"]).css_selector == "-s"


class TestMain:
    def test_prints_matching_element(self, monkeypatch, capsys):
        html = "<html><head></head><body><h1 id='title'>Hello, world!</h1></body></html>"
        monkeypatch.setattr("sys.stdin", io.StringIO(html))

        assert main(["-s", "#title"]) == 0
        captured = capsys.readouterr()
        assert captured.out == '<h1 id="title">Hello, world!</h1>\n'
        assert captured.err == ""

    def test_prints_one_line_per_match(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO('<ul class="list"><li>One</li><li>Two</li></ul>'))

        assert main(["-s", ".list > li"]) == 0
        assert capsys.readouterr().out == "<li>One</li>\n<li>Two</li>\n"

    def test_no_matches_is_success(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("<p>x</p>"))

        assert main(["-s", "table"]) == 0
        assert capsys.readouterr().out == ""

    def test_argument_error(self, capsys):
        assert main([]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == "Error: CSS selector is required. Use -s option followed by a selector.\n"

    def test_empty_input(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("   "))

        assert main(["-s", "p"]) == 1
        assert capsys.readouterr().err == "Error: Failed to parse the provided HTML content.\n"

    def test_invalid_selector(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("<p>x</p>"))

        assert main(["-s", "p >"]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.startswith("Error: Failed to parse the provided CSS selector: p >")

    def test_invalid_utf8_on_stdin(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.TextIOWrapper(io.BytesIO(b"<p>\xff</p>"), encoding="utf-8"))

        assert main(["-s", "p"]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.startswith("Error: <stdio>: input is not valid UTF-8")

    def test_missing_input_file(self, tmp_path, capsys):
        missing = tmp_path / "missing.html"

        assert main(["-s", "p", "-i", str(missing)]) == 1
        assert capsys.readouterr().err.startswith(f"Error: {missing}: ")

    def test_files(self, tmp_path, capsys):
        source = tmp_path / "in.html"
        target = tmp_path / "out.html"
        source.write_text("<p>a</p><div><p>b</p></div>", encoding="utf-8")

        assert main(["-s", "div p", "-i", str(source), "-o", str(target)]) == 0
        assert capsys.readouterr().out == ""
        assert target.read_text(encoding="utf-8") == "<p>b</p>\n"
