[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mnvista"
version = "0.1.0"
description = "Detect multi-nucleotide variants by phasing nearby SNVs through shared reads in a BAM file"
requires-python = ">=3.10"
dependencies = []
keywords = ["bioinformatics", "genomics", "mnv", "snv", "variant-calling", "bam", "vcf", "phasing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Bio-Informatics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
mnvista = "mnvista.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["mnvista"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
