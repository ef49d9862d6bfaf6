from pathlib import Path
from quip.interpreter import run_source

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_5_call_statement():
    with open(EXAMPLES / 'program_5.quip', 'r', encoding='utf-8') as f:
        source = f.read()
    out = run_source(source)
    # the value returned by add() is discarded by a call statement
    assert out == []
