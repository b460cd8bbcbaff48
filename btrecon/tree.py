import copy
import re
import sys

from btrecon import ete

def add_numerical_node_labels(tree):
    # Leaves are 1..L from left to right, internal nodes follow in preorder so that the root is L+1.
    leaves = [ node for node in ete.iter_preorder(tree) if ete.is_leaf(node) ]
    for i,leaf in enumerate(leaves):
        ete.set_prop(leaf, 'numerical_label', i+1)
    num_leaf = len(leaves)
    i = 0
    for node in ete.iter_preorder(tree):
        if ete.is_leaf(node):
            continue
        ete.set_prop(node, 'numerical_label', num_leaf+i+1)
        i += 1
    return tree

def standardize_node_names(tree):
    for node in ete.iter_preorder(tree):
        node.name = '' if node.name is None else node.name
        node.name = re.sub(r'^\'', '', node.name)
        node.name = re.sub(r'\'$', '', node.name)
    leaf_names = ete.get_leaf_names(tree)
    if len(leaf_names)!=len(set(leaf_names)):
        duplicated = sorted(set([ n for n in leaf_names if leaf_names.count(n)>1 ]))
        raise ValueError('Leaf names are not unique: {}'.format(', '.join(duplicated)))
    return tree

def check_leaf_names(tree):
    for leaf_name in ete.get_leaf_names(tree):
        if leaf_name=='':
            raise ValueError('Empty leaf name found. All leaves should be labeled.')
        if re.search(r'\s', leaf_name):
            txt = 'Leaf name contains whitespace: "{}". Whitespace-delimited AddTag commands cannot carry it.'
            raise ValueError(txt.format(leaf_name))
    return None

def read_treefile(g):
    g['tree'] = ete.PhyloNode(g['tree_file'], format=1)
    g['tree'] = standardize_node_names(g['tree'])
    check_leaf_names(g['tree'])
    g['tree'] = add_numerical_node_labels(g['tree'])
    g['num_node'] = len(list(ete.iter_preorder(g['tree'])))
    g['num_leaf'] = len(ete.get_leaf_names(g['tree']))
    if len(ete.get_children(g['tree']))!=2:
        sys.stderr.write('The root of --tree is not bifurcating. The tree may be unrooted: {}\n'.format(g['tree_file']))
    txt = 'Number of leaves = {:,}, number of internal nodes = {:,}'
    print(txt.format(g['num_leaf'], g['num_node']-g['num_leaf']), flush=True)
    return g

def get_internal_nodes(tree):
    nodes = [ node for node in ete.iter_preorder(tree) if not ete.is_leaf(node) ]
    if any([ ete.get_prop(node, 'numerical_label') is None for node in nodes ]):
        tree = add_numerical_node_labels(tree)
    nodes = sorted(nodes, key=lambda node: ete.get_prop(node, 'numerical_label'))
    return nodes

def get_descendant_leaf_names(node):
    leaf_names = list()
    visited = set()
    stack = [node,]
    while len(stack):
        current = stack.pop()
        if id(current) in visited:
            raise ValueError('Node visited twice during traversal. The tree contains a cycle.')
        visited.add(id(current))
        if ete.is_leaf(current):
            leaf_names.append(current.name)
            continue
        # Reversed so that the leftmost child is popped first.
        stack.extend(reversed(ete.get_children(current)))
    return leaf_names

def write_nexus_tree(tree, outfile):
    tree2 = copy.deepcopy(tree)
    translate = list()
    for node in ete.iter_preorder(tree2):
        if ete.is_leaf(node):
            numerical_label = ete.get_prop(node, 'numerical_label')
            translate.append((numerical_label, node.name))
            node.name = str(numerical_label)
        else:
            node.name = ''
    newick = ete.write_tree(tree2, format=5)
    lines = ['#NEXUS', 'begin trees;', '\ttranslate']
    translate_lines = [ '\t\t{} {}'.format(nl, name) for nl,name in sorted(translate) ]
    lines += [ tl+',' for tl in translate_lines[:-1] ] + [ translate_lines[-1]+';' ]
    lines += ['\ttree tree1 = '+newick, 'end;']
    with open(outfile, 'w') as f:
        f.write('\n'.join(lines)+'\n')
    return None
