from pathlib import Path
from quip.interpreter import run_source

EXAMPLES = Path(__file__).resolve().parent.parent / 'examples'


def test_program_8_lists_maps_indexing():
    with open(EXAMPLES / 'program_8.quip', 'r', encoding='utf-8') as f:
        source = f.read()
    out = run_source(source)
    assert out == ['20', 'Ada', 'quip', 'a', '[10, 20, 30]']
