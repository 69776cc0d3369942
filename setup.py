from setuptools import setup

setup(
    name='stumpboost',
    version='1.0',
    py_modules=['adaboost', 'stump_trainer', 'validation'],
    description='Multiclass AdaBoost with exact weighted decision-stump search',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    python_requires='>=3.10',
    install_requires=[
        'numpy',
    ],
    extras_require={
        'test': ['pytest'],
        'experiments': ['scikit-learn'],
    },
)
