from pathlib import Path
from quip.interpreter import run_source

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_4_repeat():
    with open(EXAMPLES / 'program_4.quip', 'r', encoding='utf-8') as f:
        source = f.read()
    out = run_source(source)
    assert out == ['hi', 'hi', 'hi']
