import sys

def get_global_parameters(args):
    g = dict()
    for attr in [a for a in dir(args) if not a.startswith('_')]:
        g[attr] = getattr(args, attr)
    if 'analysis' in g.keys():
        if g['analysis']=='mcmc':
            if g['sample_period']<1:
                raise ValueError('--sample_period should be >= 1.')
            if g['iterations']<=g['burnin']:
                raise ValueError('--iterations should be larger than --burnin.')
            if g['burnin']<0:
                raise ValueError('--burnin should be >= 0.')
    if 'num_chain' in g.keys():
        if g['num_chain']<1:
            raise ValueError('--num_chain should be >= 1.')
        if (g.get('analysis')=='ml')&(g['num_chain']>1):
            sys.stderr.write('--num_chain is ignored with --analysis "ml". A single run is performed.\n')
            g['num_chain'] = 1
    if 'ci' in g.keys():
        if not (0 < g['ci'] < 1):
            raise ValueError('--ci should be between 0 and 1 (exclusive).')
    if 'log' in g.keys():
        if (g['log'] is None) or (len(g['log'])==0):
            raise ValueError('Specify at least one --log.')
    if 'max_psrf' in g.keys():
        if g['max_psrf']<1:
            raise ValueError('--max_psrf should be >= 1.')
    return g
