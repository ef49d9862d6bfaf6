from pathlib import Path
from quip.interpreter import run_source

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_3_if_else():
    with open(EXAMPLES / 'program_3.quip', 'r', encoding='utf-8') as f:
        source = f.read()
    out = run_source(source)
    assert out == ['big']
