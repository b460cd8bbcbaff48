import numpy
import pandas

import collections
import io
import os
import re
import shutil
import subprocess
import sys

LOG_SUFFIX = '.Log.txt'
# Index columns matched by normalised name, e.g. "Tree No", "Tree.No", "tree_no", "iteration".
ITERATION_COLUMN = re.compile(r'^iteration\.?$', flags=re.IGNORECASE)
TREE_INDEX_COLUMN = re.compile(r'^tree[\s._]*no\.?$', flags=re.IGNORECASE)
TABLE_HEADER = re.compile(r'^(?:iteration|tree[ ._]*no)\.?(?:\s|$)', flags=re.IGNORECASE)

# Column grammars for per-node state probabilities. Each entry maps a format name to a strict pattern
# with "node" and "state" groups. The raw BayesTraits headers come first; the other two are the
# names produced when logs pass through R-style column-name cleaning (ML and MCMC tutorials respectively).
STATE_COLUMN_FORMATS = collections.OrderedDict([
    ('bayestraits', re.compile(r'^(?P<node>[^\s.]+?)\s*(?:-\s*)?P\((?P<state>[^)\s]+)\)$')),
    ('dotted', re.compile(r'^(?:X(?=\d))?(?P<node>[A-Za-z0-9]+)\.+[pP]\.+(?P<state>[A-Za-z0-9]+)\.?$')),
    ('underscore', re.compile(r'^(?:x(?=\d))?(?P<node>[A-Za-z0-9]+)_[pP]_(?P<state>[A-Za-z0-9]+)$')),
])
STATE_COLUMN_HINT = re.compile(r'(P\(|[._][pP][._])')

def check_bayestraits_dependency(g):
    exe_path = shutil.which(g['bayestraits_exe'])
    assert (exe_path is not None), "BayesTraits PATH cannot be found: "+g['bayestraits_exe']
    print("BayesTraits PATH: {}".format(exe_path), flush=True)
    return None

def get_log_file(log_prefix):
    return log_prefix+LOG_SUFFIX

def run_bayestraits(g, tree_file, trait_file, command_file):
    command = [g['bayestraits_exe'], tree_file, trait_file]
    print('Running: {} < {}'.format(' '.join(command), command_file), flush=True)
    with open(command_file) as f:
        run_bt = subprocess.run(command, stdin=f, stdout=subprocess.PIPE, stderr=subprocess.STDOUT)
    out_txt = run_bt.stdout.decode('utf8', errors='replace')
    if g.get('verbose', False):
        print(out_txt, flush=True)
    assert (run_bt.returncode==0), "BayesTraits did not finish safely: {}".format(out_txt)
    return out_txt

def _find_table_start(lines, path):
    for i,line in enumerate(lines):
        if TABLE_HEADER.match(line.strip()):
            return i
    txt = 'Result table header (a line starting with "Iteration" or "Tree No") was not found in the log: {}'
    raise ValueError(txt.format(path))

def read_options(lines):
    options = collections.OrderedDict()
    for line in lines:
        m = re.match(r'^\s*([^:\t]+?)\s*:\s*(.*?)\s*$', line)
        if m is None:
            continue
        key = m.group(1)
        if key not in options:
            options[key] = m.group(2)
    return options

def read_table(lines, path):
    header = lines[0]
    sep = '\t' if ('\t' in header) else r'\s+'
    txt = '\n'.join([ line for line in lines if line.strip()!='' ])
    table = pandas.read_csv(io.StringIO(txt), sep=sep, header=0, index_col=False)
    table.columns = [ str(c).strip() for c in table.columns ]
    is_empty_col = [ c.startswith('Unnamed:') and table[c].isnull().all() for c in table.columns ]
    table = table.loc[:,[ c for c,e in zip(table.columns, is_empty_col) if not e ]]
    first_col = table.columns[0]
    is_numeric_row = pandas.to_numeric(table.loc[:,first_col], errors='coerce').notnull()
    if (~is_numeric_row).any():
        txt = '{:,} non-numeric trailing line(s) were ignored in the result table: {}\n'
        sys.stderr.write(txt.format((~is_numeric_row).sum(), path))
        table = table.loc[is_numeric_row,:].reset_index(drop=True)
    return table

def read_log(path):
    with open(path, 'r', errors='replace') as f:
        lines = f.read().splitlines()
    table_start = _find_table_start(lines, path)
    options = read_options(lines[:table_start])
    table = read_table(lines[table_start:], path)
    if table.shape[0]==0:
        raise ValueError('Result table has no rows: {}'.format(path))
    return options, table

def get_option(options, pattern):
    for key,value in options.items():
        if re.fullmatch(pattern, key.strip(), flags=re.IGNORECASE):
            return value
    return None

def get_sample_period(options):
    value = get_option(options, r'sample\s*period')
    if value is None:
        raise ValueError('"Sample Period" setting was not found in the log header.')
    m = re.match(r'^\s*([0-9]+)\s*$', str(value))
    if m is None:
        raise ValueError('"Sample Period" setting could not be parsed as an integer: {}'.format(value))
    sample_period = int(m.group(1))
    if sample_period<1:
        raise ValueError('"Sample Period" should be >= 1: {}'.format(sample_period))
    return sample_period

def get_burnin(options):
    value = get_option(options, r'burn\s*in')
    if value is None:
        return None
    m = re.match(r'^\s*([0-9]+)\s*$', str(value))
    return None if m is None else int(m.group(1))

def is_state_column_candidate(column):
    return STATE_COLUMN_HINT.search(str(column)) is not None

def detect_state_column_format(columns):
    candidates = [ c for c in columns if is_state_column_candidate(c) ]
    if len(candidates)==0:
        return None
    counts = collections.OrderedDict()
    for fmt,pattern in STATE_COLUMN_FORMATS.items():
        counts[fmt] = sum([ pattern.match(c) is not None for c in candidates ])
    matched = [ fmt for fmt,count in counts.items() if count>0 ]
    if len(matched)==0:
        txt = 'State probability columns did not match any supported grammar ({}): {}'
        raise ValueError(txt.format(', '.join(STATE_COLUMN_FORMATS.keys()), ', '.join(candidates)))
    if len(matched)>1:
        txt = 'State probability columns mix multiple grammars ({}).'
        raise ValueError(txt.format(', '.join(matched)))
    fmt = matched[0]
    unmatched = [ c for c in candidates if STATE_COLUMN_FORMATS[fmt].match(c) is None ]
    if len(unmatched):
        txt = 'State probability columns could not be parsed with the "{}" grammar: {}'
        raise ValueError(txt.format(fmt, ', '.join(unmatched)))
    return fmt

def parse_state_column(column, fmt):
    m = STATE_COLUMN_FORMATS[fmt].match(column)
    if m is None:
        raise ValueError('Column "{}" does not follow the "{}" state probability grammar.'.format(column, fmt))
    node = m.group('node')
    if node.lower()=='root':
        node = 'Root'
    return node, m.group('state')

def get_state_columns(columns):
    fmt = detect_state_column_format(columns)
    state_columns = collections.OrderedDict()
    if fmt is None:
        return state_columns
    for column in columns:
        if is_state_column_candidate(column):
            state_columns[column] = parse_state_column(column, fmt)
    return state_columns

def find_column(columns, pattern):
    for column in columns:
        if pattern.match(str(column).strip()):
            return column
    return None

def get_analysis_type(table):
    if find_column(table.columns, ITERATION_COLUMN) is not None:
        return 'mcmc'
    if find_column(table.columns, TREE_INDEX_COLUMN) is not None:
        return 'ml'
    raise ValueError('Neither "Iteration" nor "Tree No" column was found in the result table.')

def get_log_analysis_type(path):
    _,table = read_log(path)
    return get_analysis_type(table)

def _get_numeric_table(table, index_col, index_name, path):
    table = table.set_index(index_col)
    table.index = table.index.astype(numpy.int64)
    table.index.name = index_name
    numeric = table.apply(pandas.to_numeric, errors='coerce')
    is_numeric_col = ~(numeric.isnull() & table.notnull()).any(axis=0)
    if (~is_numeric_col).any():
        dropped = table.columns[~is_numeric_col].tolist()
        sys.stderr.write('Non-numeric columns were dropped from {}: {}\n'.format(path, ', '.join(dropped)))
    numeric = numeric.loc[:,is_numeric_col]
    return numeric

def get_parameter_table(table, path=''):
    iteration_col = find_column(table.columns, ITERATION_COLUMN)
    if iteration_col is None:
        raise ValueError('"Iteration" column was not found. Only MCMC logs can be combined into chains: {}'.format(path))
    tree_cols = [ c for c in table.columns if TREE_INDEX_COLUMN.match(str(c).strip()) ]
    table = table.drop(columns=tree_cols)
    return _get_numeric_table(table, iteration_col, 'Iteration', path)

def get_ml_parameter_table(table, path=''):
    tree_col = find_column(table.columns, TREE_INDEX_COLUMN)
    if tree_col is None:
        raise ValueError('"Tree No" column was not found in the ML result table: {}'.format(path))
    return _get_numeric_table(table, tree_col, 'Tree No', path)

def find_log_files(log_prefixes):
    log_files = list()
    for prefix in log_prefixes:
        if os.path.exists(prefix):
            log_files.append(prefix)
        elif os.path.exists(get_log_file(prefix)):
            log_files.append(get_log_file(prefix))
        else:
            raise ValueError('Log file not found: {}'.format(prefix))
    return log_files
