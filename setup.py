from setuptools import find_packages, setup


setup(
    name="prevalence",
    version="0.1.0",
    description=(
        "Frequentist and Bayesian inference of the population prevalence"
        " of within-person effects"
    ),
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=[
        "appdirs",
        "click",
        "numpy",
        "pandas",
        "scikit-learn",
        "scipy",
        "statsmodels",
    ],
    extras_require={
        "test": ["mpmath", "pytest"],
    },
)
