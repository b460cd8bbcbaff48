import os
import time

from btrecon import command
from btrecon import parser_bayestraits
from btrecon import trait
from btrecon import tree

def write_input_files(g):
    g['path_tree_nexus'] = g['prefix']+'_tree.nex'
    g['path_trait'] = g['prefix']+'_trait.txt'
    tree.write_nexus_tree(g['tree'], outfile=g['path_tree_nexus'])
    trait.write_trait_table(g['trait'], outfile=g['path_trait'])
    print('Writing tree and trait files: {}, {}'.format(g['path_tree_nexus'], g['path_trait']), flush=True)
    return g

def get_chain_prefix(g, chain_no):
    if g['num_chain']==1:
        return g['prefix']
    return g['prefix']+'_chain'+str(chain_no)

def run_chain(g, chain_no, node_tag_commands):
    log_prefix = get_chain_prefix(g, chain_no)
    log_file = parser_bayestraits.get_log_file(log_prefix)
    if os.path.exists(log_file) and (not g['redo']):
        print('Log file exists. Skipping BayesTraits (set --redo yes to rerun): {}'.format(log_file), flush=True)
        return log_file
    seed = None if (g['seed'] is None) else g['seed'] + chain_no - 1
    lines = command.get_control_lines(g=g, node_tag_commands=node_tag_commands, log_prefix=log_prefix, seed=seed)
    command_file = log_prefix+'_command.txt'
    command.write_command_file(lines=lines, outfile=command_file)
    parser_bayestraits.run_bayestraits(g=g, tree_file=g['path_tree_nexus'], trait_file=g['path_trait'],
                                       command_file=command_file)
    assert os.path.exists(log_file), 'BayesTraits log file was not generated: {}'.format(log_file)
    return log_file

def main_run(g):
    start = time.time()
    print("Reading and parsing input files.", flush=True)
    g = tree.read_treefile(g)
    g['trait'] = trait.read_trait_table(g['trait_file'])
    g['trait'] = trait.check_trait_table(tree=g['tree'], trait=g['trait'], ignore_extra=g['ignore_extra_trait'])
    node_tag_commands = command.get_node_tag_commands(tree=g['tree'], trait=g['trait'])
    g = write_input_files(g)
    parser_bayestraits.check_bayestraits_dependency(g)
    g['log_files'] = list()
    for chain_no in range(1, g['num_chain']+1):
        chain_start = time.time()
        print('Starting BayesTraits run {:,}/{:,}.'.format(chain_no, g['num_chain']), flush=True)
        g['log_files'].append(run_chain(g, chain_no, node_tag_commands))
        elapsed_time = int(time.time() - chain_start)
        print(("elapsed_time: {0}".format(elapsed_time)) + "[sec]\n", flush=True)
    print('BayesTraits log files: {}'.format(', '.join(g['log_files'])), flush=True)
    elapsed_time = int(time.time() - start)
    print(("elapsed_time: {0}".format(elapsed_time)) + "[sec]\n", flush=True)
    return g
