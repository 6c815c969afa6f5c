"""
Run summary reporter: aggregates per-test attempts into a run-level summary.
"""
