from setuptools import setup, find_packages

setup(
    name='odesteppers',  # adaptive explicit Runge-Kutta steppers
    version='0.1.0',
    description='Adaptive explicit Runge-Kutta ODE integration in PyTorch',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.9',
    install_requires=[
        'torch',
        'numpy',
        'matplotlib',
    ],
    extras_require={
        'test': [
            'pytest',
            'scipy',          # reference solutions via solve_ivp
        ],
        'examples': [
            'scipy',
        ],
    },
    entry_points={
        'console_scripts': ['odesteppers=odesteppers.cli:main'],
    },
)
