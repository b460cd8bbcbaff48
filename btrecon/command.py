import collections
import copy

from btrecon import ete
from btrecon import tree as tree_util
from btrecon import trait as trait_util

NodeTagCommand = collections.namedtuple(
    'NodeTagCommand', ['node_id', 'tag_name', 'member_labels', 'tag_command', 'node_command']
)

MODEL_IDS = {'multistate': 1}
ANALYSIS_IDS = {'ml': 1, 'mcmc': 2}

def get_tag_name(node_id):
    return 'T'+str(node_id)

def get_node_tag_command(node):
    node_id = int(ete.get_prop(node, 'numerical_label'))
    tag_name = get_tag_name(node_id)
    member_labels = tuple(tree_util.get_descendant_leaf_names(node))
    tag_command = 'AddTag {} {}'.format(tag_name, ' '.join(member_labels))
    node_command = 'AddNode {} {}'.format(node_id, tag_name)
    return NodeTagCommand(node_id, tag_name, member_labels, tag_command, node_command)

def get_node_tag_commands(tree, trait=None):
    # Names are standardised and nodes labeled on a copy; the input tree is not modified.
    tree = tree_util.standardize_node_names(copy.deepcopy(tree))
    tree_util.check_leaf_names(tree)
    if trait is not None:
        trait_util.check_trait_table(tree=tree, trait=trait)
    node_tag_commands = list()
    for node in tree_util.get_internal_nodes(tree):
        node_tag_commands.append(get_node_tag_command(node))
    return node_tag_commands

def get_command_lines(node_tag_commands):
    lines = list()
    for ntc in node_tag_commands:
        lines.append(ntc.tag_command)
        lines.append(ntc.node_command)
    return lines

def get_control_lines(g, node_tag_commands, log_prefix=None, seed=None):
    lines = [str(MODEL_IDS[g['model']]), str(ANALYSIS_IDS[g['analysis']])]
    if g['analysis']=='mcmc':
        lines.append('Iterations {}'.format(g['iterations']))
        lines.append('Burnin {}'.format(g['burnin']))
        lines.append('Sample {}'.format(g['sample_period']))
        if seed is not None:
            lines.append('Seed {}'.format(seed))
    if log_prefix is not None:
        lines.append('LogFile {}'.format(log_prefix))
    lines += get_command_lines(node_tag_commands)
    lines.append('Run')
    return lines

def write_command_file(lines, outfile):
    with open(outfile, 'w') as f:
        for line in lines:
            f.write(line+'\n')
    return None
