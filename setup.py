from setuptools import setup, find_packages

setup(
    name="fbcmodeltests",
    version="0.1.0",
    description="Quality tests and FROG reproducibility reports for constraint-based metabolic models",
    long_description=("Tests for constraint-based metabolic models in the COBRApy framework: stoichiometric "
                      "consistency, energy generating cycles, mass and charge balances, annotation and GPR checks, "
                      "and generation and comparison of FROG reproducibility reports"),
    long_description_content_type="text/plain",
    license="Apache License 2.0",
    python_requires=">=3.8",
    packages=find_packages(include=["fbcmodeltests", "fbcmodeltests.*"]),
    install_requires=["cobra", "optlang", "swiglpk", "python-libsbml", "numpy", "scipy", "pandas"],
    extras_require={"test": ["pytest", "pytest-timeout"]},
    classifiers=[
        "Intended Audience :: Science/Research", "Development Status :: 3 - Alpha", "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10", "Programming Language :: Python :: 3.11", "Programming Language :: Python :: 3.12",
        "Natural Language :: English", "Operating System :: OS Independent", "Topic :: Scientific/Engineering :: Bio-Informatics"
    ],
    keywords=["metabolism", "constraint-based", "flux balance analysis", "model testing", "reproducibility"],
    zip_safe=False,
)
