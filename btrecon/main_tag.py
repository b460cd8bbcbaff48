import time

from btrecon import command
from btrecon import trait
from btrecon import tree

def main_tag(g):
    start = time.time()
    print("Reading and parsing input files.", flush=True)
    g = tree.read_treefile(g)
    trait_df = None
    if g['trait_file'] is not None:
        trait_df = trait.read_trait_table(g['trait_file'])
        trait_df = trait.check_trait_table(tree=g['tree'], trait=trait_df)
    node_tag_commands = command.get_node_tag_commands(tree=g['tree'], trait=trait_df)
    lines = command.get_command_lines(node_tag_commands)
    command.write_command_file(lines=lines, outfile=g['outfile'])
    txt = 'Writing {:,} AddTag/AddNode commands for {:,} internal nodes: {}'
    print(txt.format(len(lines), len(node_tag_commands), g['outfile']), flush=True)
    elapsed_time = int(time.time() - start)
    print(("elapsed_time: {0}".format(elapsed_time)) + "[sec]\n", flush=True)
    return g
