# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

from concat_sources.parser import parse_source


def _texts(src: str) -> list[str]:
	return [d.text for d in parse_source(src).declarations]


def test_top_level_statements_split_on_statement_boundaries() -> None:
	src = """
Console.WriteLine("hi; {x}");
if (args.Length > 0)
{
	Run();
}
else
{
	Stop();
}
int Add(int a, int b) => a + b;
"""
	texts = _texts(src)
	assert len(texts) == 3
	assert texts[0] == 'Console.WriteLine("hi; {x}");'
	assert texts[1].startswith("if (args.Length > 0)") and texts[1].endswith("Stop();\n}")
	assert texts[2] == "int Add(int a, int b) => a + b;"


def test_if_else_without_braces_is_one_member() -> None:
	assert _texts("if (a) A(); else if (b) B(); else C();\nD();") == [
		"if (a) A(); else if (b) B(); else C();",
		"D();",
	]


def test_try_catch_finally_is_one_member() -> None:
	src = "try { A(); } catch (Exception e) when (e is not null) { B(); } finally { C(); }\nD();"
	texts = _texts(src)
	assert len(texts) == 2
	assert texts[0].endswith("finally { C(); }")


def test_do_while_consumes_its_while_only() -> None:
	src = "do { A(); } while (x);\nwhile (y) { B(); }"
	assert _texts(src) == ["do { A(); } while (x);", "while (y) { B(); }"]


def test_block_followed_by_semicolon_or_expression_continues() -> None:
	src = """
var handler = () => { Console.WriteLine("x"); };
var name = new Person { Name = "a" }.ToString();
var pick = flag ? new A { } : new B { };
class C { };
class D { }
"""
	assert _texts(src) == [
		'var handler = () => { Console.WriteLine("x"); };',
		'var name = new Person { Name = "a" }.ToString();',
		"var pick = flag ? new A { } : new B { };",
		"class C { };",
		"class D { }",
	]


def test_braces_inside_literals_and_comments_are_not_structure() -> None:
	src = """
namespace N
{
	class A
	{
		string s = "}";
		char c = '{';
		string v = @"say ""}"" now";
		string i = $"{Name("}")} }}";
		string r = \"\"\"
			{ raw
			\"\"\";
		// }
		/* { */
	}
}
"""
	unit = parse_source(src)
	assert len(unit.declarations) == 1
	text = unit.declarations[0].text
	assert text.startswith("class A")
	assert text.rstrip().endswith("}")
	assert "/* { */" in text


def test_leading_comment_block_belongs_to_member() -> None:
	src = """
namespace N
{
	/// <summary>Docs for A.</summary>
	// second line
	public class A { }

	#region helpers
	public class B { }
}
"""
	texts = _texts(src)
	assert texts[0].startswith("/// <summary>Docs for A.</summary>\n\t// second line\n\tpublic class A")
	assert texts[1] == "public class B { }"


def test_trailing_comment_stays_with_its_member() -> None:
	texts = _texts("class A {} // about A\nclass B {}")
	assert texts == ["class A {} // about A", "class B {}"]


def test_comments_before_closing_brace_or_end_of_file_trail_last_member() -> None:
	src = "namespace N\n{\n    class A { }\n    // end of N\n}\nclass B { }\n/* the end */\n"
	assert _texts(src) == ["class A { }\n    // end of N", "class B { }\n/* the end */"]


def test_comment_trailing_a_directive_is_dropped() -> None:
	unit = parse_source("using System; // for Console\nclass A { }\n")
	assert [i.text for i in unit.imports] == ["using System;"]
	assert [d.text for d in unit.declarations] == ["class A { }"]


def test_attributes_and_generic_constraints_stay_in_member() -> None:
	src = """
[Obsolete("old")]
public sealed class Box<T> : IBox<T> where T : class, new()
{
	public T Value { get; set; } = new();
}
public delegate void Handler(object sender, EventArgs e);
public record Point(int X, int Y);
"""
	texts = _texts(src)
	assert len(texts) == 3
	assert texts[0].startswith('[Obsolete("old")]\npublic sealed class Box<T>')
	assert texts[1] == "public delegate void Handler(object sender, EventArgs e);"
	assert texts[2] == "public record Point(int X, int Y);"
