"""
Test cases for the 1D finite-difference solver.

Run tests with pytest:
    pytest eulerfd/tests/ -v

Or run individual test files:
    pytest eulerfd/tests/test_gradients.py -v
    pytest eulerfd/tests/test_shock_tube.py -v
"""
