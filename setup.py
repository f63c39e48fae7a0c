from setuptools import setup

setup(
    name='sophia_crpropa',
    version="0.1.0",
    author='Leonel Morejon',
    author_email='leonel.morejon@uni-wuppertal.de',

    install_requires=['numpy', 'scipy', 'particle', 'tqdm'],
    extras_require={'test': ['pytest']},
    packages=['sophia_crpropa', 'sophia_crpropa.fragmentation'],
)
