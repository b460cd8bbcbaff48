import re
import ast
import os

from setuptools import setup, find_packages

with open(os.path.join('btrecon', '__init__.py')) as f:
    match = re.search(r'__version__\s+=\s+(.*)', f.read())
version = str(ast.literal_eval(match.group(1)))

setup(
    name             = 'btrecon',
    version          = version,
    description      = 'Ancestral state reconstruction of discrete traits with BayesTraits: node tagging and multi-chain MCMC log aggregation',
    license          = "BSD 3-clause License",
    keywords         = 'ancestral state reconstruction BayesTraits MCMC convergence',
    python_requires  = '>=3.8',
    packages         = find_packages(exclude=['tests',]),
    install_requires = ['ete3','six','numpy','pandas','arviz<1.0'],
    extras_require   = {'test': ['pytest',]},
    scripts          = ['btrecon/btrecon',],
    include_package_data = True,
)
