import time

from btrecon import chain
from btrecon import parser_bayestraits
from btrecon import table

def get_analysis_type(log_files):
    analysis_types = [ parser_bayestraits.get_log_analysis_type(f) for f in log_files ]
    if len(set(analysis_types))>1:
        txt = 'MCMC and ML logs cannot be aggregated together: {}'
        raise ValueError(txt.format(', '.join([ '{} ({})'.format(f, a) for f,a in zip(log_files, analysis_types) ])))
    return analysis_types[0]

def write_chain_diagnostics(g, chain_set):
    print("Calculating convergence diagnostics.", flush=True)
    diag = chain.get_chain_diagnostics(chain_set, min_ess=g['min_ess'], max_psrf=g['max_psrf'])
    diag.to_csv(g['prefix']+'_chain_diagnostics.tsv', sep="\t", index=False, float_format='%.4f')
    is_converged = diag.loc[:,'is_ess_ok'].all() & diag.loc[:,'is_psrf_ok'].all()
    if (not is_converged) & g['convergence_strict']:
        raise ValueError('Convergence criteria were not met (--min_ess {}, --max_psrf {}).'.format(g['min_ess'], g['max_psrf']))
    return diag

def write_state_tables(g, state_long):
    if state_long.shape[0]==0:
        print('No ancestral state probability columns were found in the logs.', flush=True)
    state_long.to_csv(g['prefix']+'_state_long.tsv', sep="\t", index=False, float_format='%.6f')
    summary = table.summarize_state_probability(state_long, ci=g['ci'])
    summary.to_csv(g['prefix']+'_state_summary.tsv', sep="\t", index=False, float_format='%.6f')
    txt = 'Summarized {:,} node-state pairs with {:.0%} credible intervals.'
    print(txt.format(summary.shape[0], g['ci']), flush=True)
    if g['reference'] is not None:
        reference = table.read_reference_table(g['reference'])
        comparison = table.compare_state_probability(summary, reference)
        comparison.to_csv(g['prefix']+'_state_comparison.tsv', sep="\t", index=False, float_format='%.6f')
        print('Maximum absolute difference from the reference: {:.4f}'.format(comparison.loc[:,'abs_diff'].max()), flush=True)
    return summary

def main_aggregate(g):
    start = time.time()
    print("Reading and parsing BayesTraits logs.", flush=True)
    log_files = parser_bayestraits.find_log_files(g['log'])
    g['analysis'] = get_analysis_type(log_files)
    if g['analysis']=='ml':
        print('ML logs were detected. Convergence diagnostics are skipped.', flush=True)
        print("Reshaping ancestral state probabilities.", flush=True)
        state_long = table.get_state_long_table_ml(log_files)
    else:
        chain_set = chain.ChainSet.from_files(log_files)
        txt = 'Combined {:,} chains: {:,} samples in total, {:,} parameters.'
        print(txt.format(chain_set.num_chain, chain_set.num_sample, len(chain_set.parameters)), flush=True)
        write_chain_diagnostics(g, chain_set)
        print("Reshaping ancestral state probabilities.", flush=True)
        state_long = table.get_state_long_table(chain_set)
    write_state_tables(g, state_long)
    elapsed_time = int(time.time() - start)
    print(("elapsed_time: {0}".format(elapsed_time)) + "[sec]\n", flush=True)
    return g
