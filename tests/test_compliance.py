"""
Compliance scanner tests.

Covers each forbidden-construct rule, comment stripping, line numbering,
and the documented string-literal limitation.
"""
import dataclasses
import unittest

from voc.compliance import RULES, Violation, is_compliant, scan


def rule_ids(source):
    return [v.rule_id for v in scan(source)]


class TestScanBasics(unittest.TestCase):

    def test_const_reports_exact_line(self):
        source = "var a = 1;\nconst x = 1;\nvar b = 2;\n"
        violations = scan(source)
        self.assertTrue(violations)
        self.assertEqual({v.line for v in violations}, {2})
        self.assertIn("block-scoped-declaration", [v.rule_id for v in violations])
        self.assertEqual(violations[0].snippet, "const x = 1;")

    def test_es5_code_is_clean(self):
        source = (
            "var x = 1;\n"
            "function test() { return 'good'; }\n"
            "logInfo('test');\n"
            "var lineMap = new Map();\n"
            "for (var i = 0; i < 3; i++) { items[i] = i * 2; }\n"
            "if (a >= b) { c = a <= b; }\n"
            "try { risky(); } catch (e) { logError(e.message); }\n"
        )
        self.assertEqual(scan(source), [])
        self.assertTrue(is_compliant(source))

    def test_empty_source(self):
        self.assertEqual(scan(""), [])

    def test_one_line_many_rules(self):
        ids = rule_ids("const f = (a) => `${a}`;")
        self.assertIn("block-scoped-declaration", ids)
        self.assertIn("arrow-function", ids)
        self.assertIn("template-literal", ids)
        self.assertEqual(len(ids), len(set(ids)))

    def test_violations_follow_rule_order(self):
        order = [rule_id for rule_id, _, _ in RULES]
        ids = rule_ids("let f = async () => x?.y ?? z;")
        self.assertEqual(ids, sorted(ids, key=order.index))

    def test_crlf_line_numbers(self):
        violations = scan("var a = 1;\r\nvar b = 2;\r\nlet c = 3;\r\n")
        self.assertEqual(violations[0].line, 3)
        self.assertEqual(violations[0].snippet, "let c = 3;")

    def test_violation_is_immutable(self):
        violation = scan("let y = 2;")[0]
        with self.assertRaises(dataclasses.FrozenInstanceError):
            violation.line = 10

    def test_with_fragment_returns_copy(self):
        violation = scan("let y = 2;")[0]
        tagged = violation.with_fragment("src/globalCode.js")
        self.assertIsNone(violation.fragment)
        self.assertEqual(tagged.fragment, "src/globalCode.js")
        self.assertEqual(tagged.to_dict()["ruleId"], "block-scoped-declaration")


class TestRules(unittest.TestCase):

    CASES = [
        ("async function go() {}", "async-await"),
        ("var r = await fetchIt();", "async-await"),
        ("class Router {}", "class-syntax"),
        ("import helpers from './helpers';", "module-syntax"),
        ("export default main;", "module-syntax"),
        ("var fs = require('fs');", "require-call"),
        ("let count = 0;", "block-scoped-declaration"),
        ("for (let i = 0; i < n; i++) {}", "for-block-scoped"),
        ("p.then(ok).catch(fail);", "promise-catch"),
        ("Promise.all([a, b]);", "promise-combinator"),
        ("Promise.race([a, b]);", "promise-combinator"),
        ("var v = a ?? b;", "nullish-coalescing"),
        ("var v = a?.b;", "optional-chaining"),
        ("eval('1 + 1');", "dynamic-evaluation"),
        ("var f = new Function('a', 'return a');", "dynamic-evaluation"),
        ("console.log('debug');", "console-diagnostics"),
        ("setTimeout(retry, 100);", "timer-primitive"),
        ("setInterval(poll, 100);", "timer-primitive"),
        ("var s = `hello`;", "template-literal"),
        ("var f = function (cb) { return cb; }, g = x => x;", "arrow-function"),
        ("merge(...parts);", "rest-spread"),
        ("var {a, b} = obj;", "object-destructuring"),
        ("({a: x, b: y} = obj);", "object-destructuring"),
        ("var [first, second] = pair;", "array-destructuring"),
        ("[a, b] = [b, a];", "array-destructuring"),
    ]

    def test_each_rule_fires(self):
        for source, expected in self.CASES:
            with self.subTest(source=source):
                self.assertIn(expected, rule_ids(source))

    def test_index_assignment_is_not_destructuring(self):
        self.assertEqual(rule_ids("lineMap[key] = value;"), [])
        self.assertEqual(rule_ids("matrix[i][j] = 0;"), [])

    def test_comparison_is_not_arrow(self):
        self.assertNotIn("arrow-function", rule_ids("if (a >= b && c <= d) { ok = true; }"))

    def test_try_catch_is_allowed(self):
        self.assertEqual(rule_ids("try { go(); } catch (err) { logError(err); }"), [])


class TestCommentStripping(unittest.TestCase):

    def test_line_comment_ignored(self):
        self.assertEqual(scan("var a = 1; // const b = 2;"), [])

    def test_inline_block_comment_ignored(self):
        self.assertEqual(scan("var a = /* let */ 1;"), [])

    def test_multiline_block_comment_ignored(self):
        source = (
            "/**\n"
            " * Let the caller decide; const values are fine here.\n"
            " * let x = () => 1;\n"
            " */\n"
            "var a = 1;\n"
            "let b = 2;\n"
        )
        violations = scan(source)
        self.assertEqual([v.line for v in violations], [6])

    def test_code_after_block_comment_is_scanned(self):
        violations = scan("/* header\n end */ let z = 1;")
        self.assertEqual(violations[0].line, 2)

    def test_string_literal_limitation(self):
        # Strings are not tokenised: text that looks like code is still reported.
        self.assertIn("rest-spread", rule_ids("logInfo('Loading...');"))


if __name__ == "__main__":
    unittest.main()
