from setuptools import setup, find_packages

setup(
  name = 'marketmodel',         # How you named your package folder
  packages = find_packages(include=['marketmodel', 'marketmodel.*']),
  version = '0.1',      # Start with a small number and increase it with every change you make
  license='Mozilla Public License Version 2.0',
  description = 'Pathwise Greeks of caplets and caps in the LIBOR market model',
  keywords = ['finance', 'derivative', 'risk', 'libor market model', 'monte carlo', 'greeks'],
  python_requires='>=3.10',   # match statements
  install_requires=[
    'numpy',
    'pandas',
    'scipy',
    'prettytable',
      ],
  extras_require={
    'test': ['pytest'],
  },
  classifiers=[
    'Development Status :: 3 - Alpha',
    'Intended Audience :: Developers',
    'Intended Audience :: Financial and Insurance Industry',
    'License :: OSI Approved :: Mozilla Public License 2.0 (MPL 2.0)',
    'Programming Language :: Python :: 3.10',
  ],
)
