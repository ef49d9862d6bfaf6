import pytest

from quip.errors import QuipError
from quip.interpreter import Interpreter, block_end, dedent, run_program


def run(*lines, **options):
    return run_program(list(lines), **options)


def run_error(*lines, **options):
    with pytest.raises(QuipError) as exc:
        run(*lines, **options)
    return exc.value


def test_blank_and_comment_lines_are_skipped():
    assert run('', '# a comment', '   ', 'say "ok"') == ['ok']


def test_set_declares_constant_readable_like_var():
    assert run('set LIMIT = 3', 'say LIMIT * 2') == ['6']


@pytest.mark.parametrize('first, second', [
    ('let x = 1', 'let x = 2'),
    ('let x = 1', 'set x = 2'),
    ('set x = 1', 'let x = 2'),
    ('set x = 1', 'set x = 2'),
])
def test_redeclaration_in_same_scope_fails(first, second):
    err = run_error(first, second)
    assert err.kind == 'NameError'
    assert err.line == 2


def test_assignment_to_undeclared_fails():
    err = run_error('x = 1')
    assert err.kind == 'NameError'
    assert 'not declared' in str(err)


def test_assignment_mutates_ancestor_binding():
    out = run(
        'let total = 0',
        'repeat 4:',
        '    total = total + 1',
        'say total',
    )
    assert out == ['4']


def test_shadowing_leaves_parent_untouched():
    out = run(
        'let x = "outer"',
        'if true:',
        '    let x = "inner"',
        '    x = x + "!"',
        '    say x',
        'say x',
    )
    assert out == ['inner!', 'outer']


def test_block_locals_do_not_leak():
    err = run_error(
        'if true:',
        '    let hidden = 1',
        'let shown = hidden + 1',
    )
    assert err.kind == 'NameError'
    assert err.line == 3


def test_if_without_else_skips_body():
    assert run('if 1 > 2:', '    say "no"', 'say "after"') == ['after']


@pytest.mark.parametrize('value, expected', [('1', ['then']), ('0', ['else'])])
def test_if_else_runs_exactly_one_branch(value, expected):
    out = run(
        f'let flag = {value}',
        'if flag:',
        '    say "then"',
        'else:',
        '    say "else"',
    )
    assert out == expected


def test_else_may_follow_blank_line():
    out = run('if false:', '    say "a"', '', 'else:', '    say "b"')
    assert out == ['b']


def test_stray_else_is_syntax_error():
    err = run_error('say "x"', 'else:', '    say "y"')
    assert err.kind == 'SyntaxError'
    assert err.line == 2


def test_nested_blocks():
    out = run(
        'let n = 0',
        'while n < 4:',
        '    n = n + 1',
        '    if n % 2 == 0:',
        '        say n + " even"',
        '    else:',
        '        say n + " odd"',
        'say "done"',
    )
    assert out == ['1 odd', '2 even', '3 odd', '4 even', 'done']


def test_repeat_runs_body_exactly_n_times_with_fresh_scope():
    out = run(
        'repeat 3:',
        '    let seen = 0',
        '    seen = seen + 1',
        '    say seen',
    )
    assert out == ['1', '1', '1']


def test_repeat_count_may_be_an_expression():
    assert run('let n = 2', 'repeat n + 1:', '    say "x"') == ['x', 'x', 'x']


@pytest.mark.parametrize('count', ['-1', '1.5', '"3"', '1e999', '0 * 1e999'])
def test_repeat_rejects_bad_counts(count):
    err = run_error(f'repeat {count}:', '    say "x"')
    assert err.kind == 'TypeError'


def test_non_finite_repeat_count_is_reported_not_raised():
    result = Interpreter().execute(['say "a"', 'repeat 1e999:', '    say "x"'])
    assert not result.ok
    assert result.error.kind == 'TypeError'
    assert result.output == ['a']


def test_repeat_is_not_limited_by_iteration_budget():
    out = run('repeat 7:', '    say "x"', max_iterations=5)
    assert out == ['x'] * 7


def test_blank_line_ends_body():
    err = run_error('function f():', '    say "a"', '', '    say "b"', 'f()')
    assert err.kind == 'SyntaxError'
    assert err.line == 4
    assert 'indentation' in str(err)


def test_indented_comment_keeps_body_going():
    out = run('repeat 2:', '    say "a"', '    # still inside', '    say "b"')
    assert out == ['a', 'b', 'a', 'b']


def test_repeat_zero_skips_body():
    assert run('repeat 0:', '    say missing', 'say "end"') == ['end']


def test_while_false_never_runs_body():
    assert run('while false:', '    say undefined_name', 'say "end"') == ['end']


def test_while_iteration_budget():
    err = run_error('while true:', '    say "spin"', max_iterations=5)
    assert err.kind == 'LimitError'
    assert err.output == ['spin'] * 5


def test_say_quoted_literal_is_verbatim():
    assert run('say "1 + 2 and x[0]"') == ['1 + 2 and x[0]']
    assert run("say 'it is \"quoted\"'") == ['it is "quoted"']


def test_say_evaluates_expressions():
    assert run('say "a" + "b"') == ['ab']
    assert run('say [1, "two"]') == ['[1, "two"]']


def test_say_reports_errors_inline():
    out = run('let s = "abc"', 'say s[5]', 'say "next"')
    assert out == ['Error in say: Index 5 out of range for string', 'next']


def test_unknown_statement_is_syntax_error():
    err = run_error('say "before"', 'print x')
    assert err.kind == 'SyntaxError'
    assert 'print x' in str(err)
    assert err.line == 2
    assert err.output == ['before']


def test_unexpected_indentation_is_syntax_error():
    err = run_error('say "a"', '    say "b"')
    assert err.kind == 'SyntaxError'
    assert 'indentation' in str(err)


def test_inconsistent_indentation_inside_block():
    err = run_error('if true:', '      say "six spaces"')
    assert err.kind == 'SyntaxError'
    assert err.line == 2


def test_reserved_words_cannot_be_declared():
    assert run_error('let if = 1').kind == 'SyntaxError'
    assert run_error('let true = 1').kind == 'SyntaxError'


def test_errors_in_nested_blocks_report_program_line():
    err = run_error(
        'let x = 1',
        'if true:',
        '    if true:',
        '        say "ok"',
        '        let y = nope',
    )
    assert err.kind == 'NameError'
    assert err.line == 5
    assert err.source == 'let y = nope'
    assert err.output == ['ok']
    assert err.describe() == 'NameError: Variable "nope" not found (line 5: let y = nope)'


def test_declaration_with_list_and_map_literals():
    out = run(
        "let pets = ['cat', 'dog']",
        'let ages = {"cat": 3, "dog": 5}',
        'say pets[1] + " is " + ages[pets[1]]',
    )
    assert out == ['dog is 5']


def test_malformed_list_literal_in_declaration():
    assert run_error('let xs = [1, 2,, 3]').kind == 'SyntaxError'


def test_each_run_resets_session():
    interpreter = Interpreter()
    assert interpreter.run(['let x = 1', 'function f():', '    return 1']) == []
    err = None
    try:
        interpreter.run(['say x', 'f()'])
    except QuipError as ex:
        err = ex
    assert err is not None and err.kind == 'NameError'
    assert err.output == ['Error in say: Variable "x" not found']


def test_execute_returns_result_instead_of_raising():
    interpreter = Interpreter()
    good = interpreter.execute(['say 1'])
    assert good.ok and good.output == ['1']
    bad = interpreter.execute(['say 1', 'oops'])
    assert not bad.ok
    assert bad.output == ['1']
    assert bad.error.kind == 'SyntaxError'


def test_block_extraction_helpers():
    lines = ['if x:', '    a', '        b', '    c', 'd']
    assert block_end(lines, 1, len(lines)) == 4
    assert dedent(lines, 1, 4) == ['a', '    b', 'c']
    assert block_end(lines, 4, len(lines)) == 4


def test_debug_output_goes_to_file(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    interpreter = Interpreter(debug_level=2, debug_file=str(debug_file))
    interpreter.run(['let x = 1'])
    interpreter.close()
    text = debug_file.read_text(encoding='utf-8')
    assert 'declare var x: number = 1' in text


def test_debug_output_defaults_to_stderr(capsys):
    run('say 1', debug_level=1)
    captured = capsys.readouterr()
    assert captured.out == ''
    assert 'run finished' in captured.err
