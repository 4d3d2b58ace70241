"""
Built-in derived-variable catalogue.

Importing this package registers every function below with the
derivation registry. Rule documents refer to them by registered name.
"""

from cchs_harmonizer.derived import adl, bmi, immigration, smoking  # noqa: F401
