"""
NIBRS Pipeline - Datasets

Each dataset lives in its own subpackage with ingest, preprocess and
feature modules built on the base classes in `datasets.base`.
"""
