import numpy
import pandas

from btrecon import parser_bayestraits

LONG_COLUMNS = ['chain_id', 'iteration', 'node', 'state', 'probability']

def melt_state_probability(samples, chain_id):
    state_columns = parser_bayestraits.get_state_columns(samples.columns)
    if len(state_columns)==0:
        return pandas.DataFrame(columns=LONG_COLUMNS)
    df = samples.loc[:,list(state_columns.keys())].copy()
    df.index.name = 'iteration'
    df = df.reset_index()
    df = df.melt(id_vars='iteration', var_name='column', value_name='probability')
    df = df.loc[df.loc[:,'probability'].notnull(),:].copy()
    df['node'] = df['column'].map(lambda c: state_columns[c][0])
    df['state'] = df['column'].map(lambda c: state_columns[c][1])
    df['chain_id'] = chain_id
    df = df.loc[:,LONG_COLUMNS].reset_index(drop=True)
    return df

def get_state_long_table(chain_set):
    dfs = [ melt_state_probability(c.samples, c.chain_id) for c in chain_set ]
    df = pandas.concat(dfs, ignore_index=True)
    df = sort_state_table(df)
    return df

def get_state_long_table_ml(log_files):
    # ML logs have one row per tree; "iteration" holds the tree number.
    dfs = list()
    for i,path in enumerate(log_files):
        _,log_table = parser_bayestraits.read_log(path)
        params = parser_bayestraits.get_ml_parameter_table(log_table, path=path)
        dfs.append(melt_state_probability(params, chain_id=i+1))
    df = pandas.concat(dfs, ignore_index=True)
    df = sort_state_table(df)
    return df

def sort_state_table(df):
    if df.shape[0]==0:
        return df
    is_root = (df.loc[:,'node']=='Root')
    node_num = pandas.to_numeric(df.loc[:,'node'], errors='coerce')
    df = df.assign(_is_not_root=~is_root, _node_num=node_num)
    sort_cols = [ c for c in ['_is_not_root','_node_num','node','state','chain_id','iteration'] if c in df.columns ]
    df = df.sort_values(by=sort_cols, kind='mergesort')
    df = df.drop(columns=['_is_not_root','_node_num']).reset_index(drop=True)
    return df

def summarize_state_probability(df, ci=0.95):
    alpha = (1 - ci) / 2
    grouped = df.groupby(['node','state'], sort=False)['probability']
    summary = pandas.DataFrame({
        'num_sample': grouped.size(),
        'mean': grouped.mean(),
        'median': grouped.median(),
        'lower': grouped.quantile(alpha),
        'upper': grouped.quantile(1-alpha),
    }).reset_index()
    summary = sort_state_table(summary)
    return summary

def read_reference_table(path):
    ref = pandas.read_csv(path, sep='\t', comment='#', header=0, dtype={'node': str, 'state': str})
    missing = [ c for c in ['node','state','probability'] if c not in ref.columns ]
    if len(missing):
        txt = 'Reference table should be tab-separated with a header including "node", "state", and "probability". Missing: {}'
        raise ValueError(txt.format(', '.join(missing)))
    ref['node'] = ref['node'].str.strip().replace({'root': 'Root'})
    ref['state'] = ref['state'].str.strip()
    return ref.loc[:,['node','state','probability']]

def compare_state_probability(summary, reference, stat='mean'):
    ref = reference.rename(columns={'probability': 'reference_probability'})
    df = pandas.merge(summary.loc[:,['node','state',stat]], ref, on=['node','state'], how='outer', indicator=True)
    df = df.rename(columns={stat: 'probability'})
    df['abs_diff'] = (df['probability'] - df['reference_probability']).abs()
    if ('lower' in summary.columns) and ('upper' in summary.columns):
        bounds = summary.loc[:,['node','state','lower','upper']]
        df = pandas.merge(df, bounds, on=['node','state'], how='left')
        is_within = (df['reference_probability']>=df['lower']) & (df['reference_probability']<=df['upper'])
        df['is_within_ci'] = numpy.where(df['_merge']=='both', is_within.map({True: 'Y', False: 'N'}), '')
        df = df.drop(columns=['lower','upper'])
    df['presence'] = df['_merge'].astype(str).map({'both': 'both', 'left_only': 'this_only', 'right_only': 'reference_only'})
    df = df.drop(columns=['_merge'])
    df = sort_state_table(df)
    return df
