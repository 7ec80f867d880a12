import pytest
from fbcmodeltests.names import *

# Initialize an empty list for solvers
solvers = [GLPK]

# Add GUROBI to the list if the gurobipy package is installed
try:
    import gurobipy
    solvers.append(GUROBI)
except ImportError:
    pass  # GUROBI is not installed

# Add CPLEX to the list if the cplex package is installed
try:
    import cplex
    solvers.append(CPLEX)
except ImportError:
    pass  # CPLEX is not installed

# Add SCIP to the list if the pyscipopt package is installed
try:
    import pyscipopt
    solvers.append(SCIP)
except ImportError:
    pass  # SCIP is not installed


@pytest.fixture(params=solvers, scope="session")
def curr_solver(request: pytest.FixtureRequest) -> str:
    """Provide session-level fixture for parametrized solver names."""
    return request.param
