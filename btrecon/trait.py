import pandas

import sys

from btrecon import ete

def read_trait_table(path):
    trait = pandas.read_csv(path, sep=r'\s+', comment='#', skip_blank_lines=True, header=None, dtype=str)
    if trait.shape[1]<2:
        txt = '--trait should be a whitespace-separated table without header. '
        txt += 'First column = leaf names; Second column and after = discrete states. {}'
        raise ValueError(txt.format(path))
    trait.columns = ['name'] + [ 'trait'+str(i+1) for i in range(trait.shape[1]-1) ]
    if trait.loc[:,'name'].duplicated().any():
        duplicated = trait.loc[trait.loc[:,'name'].duplicated(),'name'].unique().tolist()
        raise ValueError('Leaf names are duplicated in --trait: {}'.format(', '.join(duplicated)))
    return trait

def check_trait_table(tree, trait, ignore_extra=False):
    leaf_names = ete.get_leaf_names(tree)
    trait_names = trait.loc[:,'name'].tolist()
    dif1 = sorted(set(leaf_names) - set(trait_names))
    dif2 = sorted(set(trait_names) - set(leaf_names))
    if len(dif2):
        txt = 'Taxa that are present in trait table but not in tree: {}\n'.format(', '.join(dif2))
        if ignore_extra:
            sys.stderr.write(txt)
        else:
            raise ValueError(txt.strip())
    if len(dif1):
        txt = 'Taxa that are present in tree but not in trait table: {}'
        raise ValueError(txt.format(', '.join(dif1)))
    trait = trait.set_index('name').loc[leaf_names,:].reset_index()
    return trait

def write_trait_table(trait, outfile):
    trait.to_csv(outfile, sep='\t', index=False, header=False)
    return None
