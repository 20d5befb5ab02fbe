import pytest

from execute import build_arg_parser, main


def output(capsys, *argv) -> str:
    """Helper function that runs the command line and returns what it printed."""
    assert main(list(argv)) == 0
    return capsys.readouterr().out.strip()


class TestEvaluate:
    def test_expression(self, capsys):
        assert output(capsys, "2+3*4") == "14"

    def test_definitions(self, capsys):
        assert output(capsys, "-D", "a=3", "-D", "b=a^2", "a + b") == "12"

    def test_definitions_out_of_order(self, capsys):
        assert output(capsys, "--define", "b=a^2", "--define", "a=3", "b") == "9"

    def test_tex(self, capsys):
        assert output(capsys, "--tex", "2*pi") == "2 \\pi"

    def test_empty_expression(self, capsys):
        assert output(capsys, "") == ""


class TestSimplify:
    def test_simplify(self, capsys):
        assert output(capsys, "-s", "all", "x + 1 + 2") == "x + 3"

    def test_simplify_to_tex(self, capsys):
        assert output(capsys, "--tex", "-s", "all", "x^1/2") == "\\frac{ x }{ 2 }"

    def test_ruleset_flags(self, capsys):
        assert output(capsys, "-s", "fractionnumbers", "x + 0.5") == "x + 1/2"


class TestAst:
    def test_ast(self, capsys):
        assert output(capsys, "--ast", "2x + 1") == "+(\n  *(2, x),\n  1,\n)"


class TestErrors:
    @pytest.mark.parametrize("argv, kind", [
        (["y + 1"], "jme.evaluate.undefined variable"),
        (["(1 + 2"], "jme.shunt.no right bracket"),
        (["-s", "nonsense", "x"], "jme.display.collectRuleset.set not defined"),
        (["-D", "a=a+1", "a"], "jme.variables.circular reference"),
    ], ids=["undefined", "syntax", "unknown-ruleset", "circular"])
    def test_reported_on_stderr(self, capsys, argv, kind):
        assert main(argv) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "✗" in captured.err and kind in captured.err

    def test_bad_definition_argument(self, capsys):
        with pytest.raises(SystemExit) as info:
            main(["-D", "nonsense", "1"])
        assert info.value.code == 2
        assert "expected name=expression" in capsys.readouterr().err

    def test_parser_defaults(self):
        args = build_arg_parser().parse_args(["x"])
        assert args.define == [] and args.simplify is None and not args.tex and not args.ast
