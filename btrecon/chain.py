import arviz
import numpy
import pandas

import copy
import os
import sys
import warnings

from btrecon import parser_bayestraits

DEFAULT_MIN_ESS = 200
DEFAULT_MAX_PSRF = 1.01

class ChainLog(object):
    '''
    Retained post-burn-in samples of one MCMC run.

    The sample grid is taken from the log itself: start and end are the smallest and largest
    iterations in the table, and thin is the sample period of the log header.
    '''
    def __init__(self, chain_id, samples, thin, options=None):
        if samples.shape[0]==0:
            raise ValueError('Chain {} has no samples.'.format(chain_id))
        self.chain_id = chain_id
        self.options = options if options is not None else dict()
        self.samples = samples.sort_index()
        self.thin = int(thin)
        self.start = int(self.samples.index.min())
        self.end = int(self.samples.index.max())
        self._check_iteration_grid()

    @classmethod
    def from_file(cls, path, chain_id=None):
        if chain_id is None:
            chain_id = os.path.basename(path)
        options,table = parser_bayestraits.read_log(path)
        samples = parser_bayestraits.get_parameter_table(table, path=path)
        thin = parser_bayestraits.get_sample_period(options)
        return cls(chain_id=chain_id, samples=samples, thin=thin, options=options)

    def _check_iteration_grid(self):
        iterations = self.samples.index.values
        if (self.end-self.start) % self.thin != 0:
            txt = 'Chain {}: iteration range {:,}-{:,} is not a multiple of the sample period {:,}.'
            raise ValueError(txt.format(self.chain_id, self.start, self.end, self.thin))
        expected = numpy.arange(self.start, self.end+1, self.thin)
        if (iterations.shape[0]!=expected.shape[0]) or (not (iterations==expected).all()):
            txt = 'Chain {}: {:,} samples found, but {:,} are expected from iterations {:,}-{:,} with sample period {:,}.'
            raise ValueError(txt.format(self.chain_id, iterations.shape[0], expected.shape[0],
                                        self.start, self.end, self.thin))
        return None

    @property
    def parameters(self):
        return self.samples.columns.tolist()

    @property
    def num_sample(self):
        return self.samples.shape[0]

    @property
    def burnin(self):
        return parser_bayestraits.get_burnin(self.options)

    def __repr__(self):
        txt = 'ChainLog(chain_id={!r}, start={}, end={}, thin={}, num_sample={}, num_parameter={})'
        return txt.format(self.chain_id, self.start, self.end, self.thin, self.num_sample, len(self.parameters))


class ChainSet(object):
    '''
    Chains that share parameters and sample grid.

    Construction fails when the chains cannot be compared, because between- and within-chain
    variances computed over misaligned chains are meaningless.
    '''
    def __init__(self, chains):
        chains = list(chains)
        if len(chains)==0:
            raise ValueError('At least one chain is required to make a chain set.')
        chain_ids = [ c.chain_id for c in chains ]
        if len(chain_ids)!=len(set(chain_ids)):
            raise ValueError('Chain IDs are not unique: {}'.format(', '.join([ str(ci) for ci in chain_ids ])))
        reference = chains[0]
        for chain in chains[1:]:
            missing = [ p for p in reference.parameters if p not in chain.parameters ]
            extra = [ p for p in chain.parameters if p not in reference.parameters ]
            if len(missing) or len(extra):
                txt = 'Parameters differ between chains {} and {}. Missing: {}; Extra: {}'
                raise ValueError(txt.format(reference.chain_id, chain.chain_id,
                                            ', '.join(missing) or 'none', ', '.join(extra) or 'none'))
            ref_grid = (reference.start, reference.end, reference.thin)
            grid = (chain.start, chain.end, chain.thin)
            if grid!=ref_grid:
                txt = 'Sample grid (start, end, thin) differs between chains {} {} and {} {}.'
                raise ValueError(txt.format(reference.chain_id, ref_grid, chain.chain_id, grid))
        # Aligned copies; the ChainLog objects passed in are left as they are.
        aligned = list()
        for chain in chains:
            chain = copy.copy(chain)
            chain.samples = chain.samples.loc[:,reference.parameters]
            aligned.append(chain)
        self.chains = aligned
        self.start = reference.start
        self.end = reference.end
        self.thin = reference.thin

    @classmethod
    def from_files(cls, paths):
        chains = list()
        for i,path in enumerate(paths):
            chain = ChainLog.from_file(path, chain_id=i+1)
            txt = 'Chain {}: {:,} samples, iterations {:,}-{:,}, sample period {:,}, burn-in {}: {}'
            burnin = 'unknown' if chain.burnin is None else '{:,}'.format(chain.burnin)
            print(txt.format(chain.chain_id, chain.num_sample, chain.start, chain.end, chain.thin, burnin, path), flush=True)
            chains.append(chain)
        return cls(chains)

    @property
    def parameters(self):
        return self.chains[0].parameters

    @property
    def num_chain(self):
        return len(self.chains)

    @property
    def num_sample_per_chain(self):
        return self.chains[0].num_sample

    @property
    def num_sample(self):
        return sum([ c.num_sample for c in self.chains ])

    def get_parameter_array(self, parameter):
        return numpy.stack([ c.samples.loc[:,parameter].values.astype(numpy.float64) for c in self.chains ], axis=0)

    def to_frame(self):
        dfs = list()
        for chain in self.chains:
            df = chain.samples.copy()
            df.index.name = 'iteration'
            df = df.reset_index()
            df.insert(0, 'chain_id', chain.chain_id)
            dfs.append(df)
        return pandas.concat(dfs, ignore_index=True)

    def __len__(self):
        return self.num_chain

    def __iter__(self):
        return iter(self.chains)


def calc_ess(chain_set):
    ess = dict()
    for parameter in chain_set.parameters:
        arr = chain_set.get_parameter_array(parameter)
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", category=RuntimeWarning)
            ess[parameter] = float(arviz.ess(arr))
    return pandas.Series(ess, name='ess').loc[chain_set.parameters]

def calc_psrf(chain_set):
    # Classic Gelman-Rubin statistic without split chains. Burn-in is already excluded by BayesTraits.
    psrf = dict()
    for parameter in chain_set.parameters:
        if chain_set.num_chain<2:
            psrf[parameter] = numpy.nan
            continue
        arr = chain_set.get_parameter_array(parameter)
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", category=RuntimeWarning)
            psrf[parameter] = float(arviz.rhat(arr, method='identity'))
    return pandas.Series(psrf, name='psrf').loc[chain_set.parameters]

def get_chain_diagnostics(chain_set, min_ess=DEFAULT_MIN_ESS, max_psrf=DEFAULT_MAX_PSRF):
    df = chain_set.to_frame().loc[:,chain_set.parameters]
    diag = pandas.DataFrame({
        'parameter': chain_set.parameters,
        'mean': df.mean(axis=0).values,
        'sd': df.std(axis=0).values,
        'ess': calc_ess(chain_set).values,
        'psrf': calc_psrf(chain_set).values,
    })
    diag.loc[:,'is_ess_ok'] = (diag.loc[:,'ess']>=min_ess) | diag.loc[:,'ess'].isnull()
    diag.loc[:,'is_psrf_ok'] = (diag.loc[:,'psrf']<=max_psrf) | diag.loc[:,'psrf'].isnull()
    num_low_ess = (~diag.loc[:,'is_ess_ok']).sum()
    num_high_psrf = (~diag.loc[:,'is_psrf_ok']).sum()
    if num_low_ess:
        txt = 'ESS < {} in {:,} of {:,} parameters: {}\n'
        low = diag.loc[~diag.loc[:,'is_ess_ok'],'parameter'].tolist()
        sys.stderr.write(txt.format(min_ess, num_low_ess, diag.shape[0], ', '.join(low)))
    if num_high_psrf:
        txt = 'PSRF > {} in {:,} of {:,} parameters: {}\n'
        high = diag.loc[~diag.loc[:,'is_psrf_ok'],'parameter'].tolist()
        sys.stderr.write(txt.format(max_psrf, num_high_psrf, diag.shape[0], ', '.join(high)))
    return diag
