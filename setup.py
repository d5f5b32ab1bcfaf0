from setuptools import find_packages, setup

setup(
    name="fea-solver",
    version="0.1.0",
    description="Local stiffness matrices for 10-node tetrahedral solid meshes",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "PyYAML",
        "meshio",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "fea-solver=fea_solver.cli.run_task:main",
        ],
    },
)
