"""Tests for the individual scoring rules."""
import pytest

CASES = [
    # (rule, path, content, expected detections)
    ("image-missing-alt", "src/Hero.tsx", '<img src="hero.png" />', 1),
    ("image-missing-alt", "src/Hero.tsx", '<img src="hero.png" alt="Hero" />', 0),
    ("image-missing-alt", "src/hero.ts", 'const tag = "<img src=x>"', 0),
    ("form-control-missing-label", "src/Form.tsx", '<input type="text" />', 1),
    ("form-control-missing-label", "src/Form.tsx", '<label htmlFor="e">Email</label><input id="e" />', 0),
    ("form-control-missing-label", "src/Form.tsx", '<input aria-label="Search" />', 0),
    ("form-control-missing-label", "src/Form.tsx", '<input type="submit" />', 0),
    ("missing-semantic-markup", "src/Page.tsx", "<div><div><div></div></div></div>", 1),
    ("missing-semantic-markup", "src/Page.tsx", "<main><div><div><div></div></div></div></main>", 0),
    ("click-without-keyboard", "src/Item.tsx", "<div onClick={open}>x</div>", 1),
    ("click-without-keyboard", "src/Item.tsx", "<div onClick={open} onKeyDown={open}>x</div>", 0),
    ("oversized-file", "data.txt", "a" * (100 * 1024 + 1), 1),
    ("oversized-file", "data.txt", "a" * 1024, 0),
    ("image-not-lazy", "src/Hero.tsx", '<img src="a.png" alt="A" />', 1),
    ("image-not-lazy", "src/Hero.tsx", '<img src="a.png" alt="A" loading="lazy" />', 0),
    ("unmemoized-list-rendering", "src/List.tsx", "items.map((item) => <li>{item}</li>)", 1),
    ("unmemoized-list-rendering", "src/List.tsx", "useMemo(() => items.map((item) => <li>{item}</li>), [items])", 0),
    ("hardcoded-api-key", "src/api.ts", 'const apiKey = "sk-live-1234567890"', 1),
    ("hardcoded-api-key", "src/api.ts", 'const apiKey = "your-api-key"', 0),
    ("hardcoded-api-key", "src/api.ts", "const apiKey = process.env.API_KEY", 0),
    ("hardcoded-api-key", "README.md", 'apiKey = "sk-live-1234567890"', 0),
    ("hardcoded-secret", "src/auth.ts", 'const clientSecret = "s3cr3tvalue"', 1),
    ("hardcoded-password", "src/db.ts", 'const config = { password: "hunter22" }', 1),
    ("hardcoded-password", "src/db.ts", 'const config = { password: "<password>" }', 0),
    ("hardcoded-token", "src/client.ts", "const authToken = 'abcdef123456'", 1),
    ("raw-markup-injection", "src/Post.tsx", "<div dangerouslySetInnerHTML={{ __html: html }} />", 1),
    ("raw-markup-injection", "src/dom.ts", "el.innerHTML = value", 1),
    ("raw-markup-injection", "src/dom.ts", "if (el.innerHTML === value) {}", 0),
    ("dynamic-code-evaluation", "src/run.ts", "const out = eval(userInput)", 1),
    ("dynamic-code-evaluation", "src/run.ts", "const fn = new Function('return 1')", 1),
    ("dynamic-code-evaluation", "src/run.ts", "setTimeout('refresh()', 100)", 1),
    ("dynamic-code-evaluation", "src/run.ts", "const m = pattern.exec(text)", 0),
    ("dynamic-code-evaluation", "src/run.ts", "evaluate(score)", 0),
    ("sql-string-interpolation", "src/db.ts", "db.query(`SELECT * FROM users WHERE id = ${id}`)", 1),
    ("sql-string-interpolation", "app/db.py", 'cur.execute(f"SELECT * FROM users WHERE id = {uid}")', 1),
    ("sql-string-interpolation", "src/db.ts", 'db.query("SELECT * FROM users WHERE id = " + id)', 1),
    ("sql-string-interpolation", "src/db.ts", 'db.query("SELECT * FROM users WHERE id = $1", [id])', 0),
    ("long-file", "src/big.ts", "\n".join(["const a = 0"] * 201), 1),
    ("long-file", "src/big.ts", "\n".join(["const a = 0"] * 200), 0),
    ("long-file", "notes.md", "\n".join(["line"] * 500), 0),
    ("missing-type-annotations", "src/math.ts", "function add(a, b) { return a + b }", 1),
    ("missing-type-annotations", "src/math.ts", "function add(a: number, b: number): number { return a + b }", 0),
    ("missing-type-annotations", "app/math.py", "def add(a, b):\n    return a + b\n", 1),
    ("missing-type-annotations", "app/math.py", "def add(a: int, b: int) -> int:\n    return a + b\n", 0),
    ("missing-type-annotations", "src/App.test.tsx", "function setup(props) { return props }", 0),
    ("missing-type-annotations", "tests/test_math.py", "def helper(a):\n    return a\n", 0),
    ("debug-output", "src/App.tsx", "console.log('rendered')", 1),
    ("debug-output", "app/main.py", "print('hi')", 1),
    ("debug-output", "notes.md", "console.log('example')", 0),
    ("debug-output", "src/App.test.tsx", "console.log('debug')", 0),
    ("magic-numbers", "src/calc.ts", "const total = 2 + 3 + 4 + 5 + 6 + 7", 1),
    ("magic-numbers", "src/calc.ts", "const total = 2 + 3 + 4 + 5 + 6", 0),
]


class TestRuleTable:
    @pytest.mark.parametrize("rule_name,path,content,expected", CASES)
    def test_rule(self, make_file, rule_name, path, content, expected):
        from src.engine.rules import RULES_BY_NAME

        language = "markdown" if path.endswith(".md") else None
        files = [make_file(path, content, language)]
        issues = RULES_BY_NAME[rule_name].evaluate(files)
        assert len(issues) == expected
        for issue in issues:
            assert issue.rule == rule_name

    def test_every_rule_has_unique_name(self):
        from src.engine.rules import RULES, RULES_BY_NAME

        assert len(RULES) == len(RULES_BY_NAME)

    def test_issue_carries_location(self, make_file):
        from src.engine.models import Dimension, Severity
        from src.engine.rules import RULES_BY_NAME

        files = [make_file("src/run.ts", "const a = 1\nconst b = eval(input)\n")]
        [issue] = RULES_BY_NAME["dynamic-code-evaluation"].evaluate(files)
        assert issue.file == "src/run.ts"
        assert issue.line == 2
        assert issue.dimension == Dimension.SECURITY
        assert issue.severity == Severity.CRITICAL
        assert issue.suggestion

    def test_one_issue_per_match(self, make_file):
        from src.engine.rules import RULES_BY_NAME

        files = [make_file("src/Gallery.tsx", '<img src="a" />\n<img src="b" />')]
        assert len(RULES_BY_NAME["image-missing-alt"].evaluate(files)) == 2


class TestTestRules:
    def test_missing_tests(self, make_file):
        from src.engine.rules import RULES_BY_NAME

        rule = RULES_BY_NAME["missing-tests"]
        assert len(rule.evaluate([make_file("src/App.tsx", "x")])) == 1
        assert len(rule.evaluate([])) == 1
        assert rule.evaluate([make_file("src/App.test.tsx", "expect(1)")]) == []

    def test_tests_without_assertions(self, make_file):
        from src.engine.rules import RULES_BY_NAME

        rule = RULES_BY_NAME["tests-without-assertions"]
        assert len(rule.evaluate([make_file("src/App.test.tsx", "it('runs', () => {})")])) == 1
        assert rule.evaluate([make_file("src/App.test.tsx", "expect(x).toBe(1)")]) == []
        assert rule.evaluate([make_file("src/App.tsx", "x")]) == []

    def test_test_paths(self):
        from src.utils.file_utils import is_test_path

        assert is_test_path("src/App.test.tsx")
        assert is_test_path("src/__tests__/app.tsx")
        assert is_test_path("tests/test_app.py")
        assert is_test_path("login.spec.ts")
        assert not is_test_path("src/App.tsx")
        assert not is_test_path("src/contest.ts")


class TestCountMagicNumbers:
    def test_ignores_strings_comments_and_trivial_values(self):
        from src.engine.rules import count_magic_numbers

        assert count_magic_numbers("const s = '42' // 99\nconst x = 0 + 1") == 0

    def test_counts_literals(self):
        from src.engine.rules import count_magic_numbers

        assert count_magic_numbers("const w = 640, h = 480, r = 1.5") == 3
