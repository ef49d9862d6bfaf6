from pathlib import Path
from quip.interpreter import run_source

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_12_multiplication_table():
    with open(EXAMPLES / 'program_12.quip', 'r', encoding='utf-8') as f:
        source = f.read()
    out = run_source(source)
    expected = [
        '1x1=1', '1x2=2', '1x3=3',
        '2x1=2', '2x2=4', '2x3=6',
        '3x1=3', '3x2=6', '3x3=9'
    ]
    assert out == expected
