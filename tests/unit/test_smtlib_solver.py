"""
Tests for the external SMT-LIB solver oracle.

Script generation and answer parsing are tested without a solver binary;
the end-to-end check is skipped when no ``z3`` executable is installed.
"""
from fractions import Fraction

import pytest

from vmt.fv.errors import OracleResourceError
from vmt.fv.model import FunctionDecl, Sort, StateVariable, app, curr, eq, nxt, sym
from vmt.fv.solver import SmtLibSolver, SolverResult, is_solver_available, resolve_solver
from vmt.fv.solver.runner import parse_solver_result, pick_solver
from vmt.fv.solver.smtlib_solver import parse_get_value_output, parse_sexprs, sexpr_value


def make_solver():
    solver = SmtLibSolver("z3")
    solver.declare_variables([StateVariable("x", Sort.INT), StateVariable("b", Sort.BOOL)])
    solver.declare_symbols({"n": FunctionDecl("n", Sort.INT)}, {})
    return solver


def test_resolve_solver():
    assert resolve_solver("cvc5").argv[0] == "cvc5"
    spec = resolve_solver("/opt/bin/mysolver")
    assert spec.name == "mysolver"
    assert spec.argv == ("/opt/bin/mysolver",)
    assert not is_solver_available("/nonexistent/solver")


def test_pick_solver_env_override(monkeypatch, tmp_path):
    exe = tmp_path / "fake-solver"
    exe.write_text("#!/bin/sh\necho unsat\n")
    exe.chmod(0o755)
    monkeypatch.setenv("VMT_FV_SMT_SOLVER", str(exe))
    assert pick_solver(preferred=()).argv == (str(exe),)


def test_parse_solver_result():
    assert parse_solver_result("; comment\nsat\n((x 1))\n") == SolverResult.SAT
    assert parse_solver_result("unsat\n(error \"model is not available\")\n") == SolverResult.UNSAT
    assert parse_solver_result("") == SolverResult.UNKNOWN


def test_parse_sexprs():
    assert parse_sexprs("((|x@0| (- 3)) (b true))") == [[["x@0", ["-", "3"]], ["b", "true"]]]


def test_sexpr_values():
    assert sexpr_value("true") is True
    assert sexpr_value("17") == 17
    assert sexpr_value(["-", "4"]) == -4
    assert sexpr_value(["/", "1.0", "3.0"]) == Fraction(1, 3)
    assert sexpr_value(["-", ["/", "1", "2"]]) == Fraction(-1, 2)
    assert sexpr_value("2.5") == Fraction(5, 2)


def test_parse_get_value_output():
    stdout = "sat\n((|x@0| 5)\n (|x@1| (- 2)))\n((|n| 7))\n"
    assert parse_get_value_output(stdout) == {"x@0": 5, "x@1": -2, "n": 7}


def test_script_declares_used_constants():
    solver = make_solver()
    solver.add_constraint(eq(nxt("x"), app("+", curr("x"), sym("n"))), 0)
    solver.push()
    solver.add_constraint(curr("b"), 1)
    script = solver.script()

    assert script.startswith("(set-option :produce-models true)\n(set-logic ALL)\n")
    assert "(declare-fun |n| () Int)" in script
    assert "(declare-fun |x@0| () Int)" in script
    assert "(declare-fun |x@1| () Int)" in script
    assert "(declare-fun |b@1| () Bool)" in script
    assert script.index("(assert (= |x@1| (+ |x@0| |n|)))") < script.index("(assert |b@1|)")
    assert "(check-sat)" in script
    assert "(get-value (|b@1| |x@0| |x@1| |n|))" in script

    solver.pop()
    assert "(assert |b@1|)" not in solver.script()


def test_pop_without_push():
    with pytest.raises(OracleResourceError):
        make_solver().pop()


def test_model_defaults_for_missing_values():
    solver = make_solver()
    solver._model = {"x@0": 3}
    assert solver.model_value("x", 0) == 3
    assert solver.model_value("x", 4) == 0
    assert solver.model_value("b", 2) is False
    assert solver.model_value("n", None) == 0


@pytest.mark.skipif(not is_solver_available("z3"), reason="z3 executable not installed")
def test_external_z3_round_trip():
    solver = make_solver()
    solver.add_constraint(eq(curr("x"), 1), 0)
    solver.add_constraint(eq(nxt("x"), app("+", curr("x"), sym("n"))), 0)
    solver.add_constraint(eq(sym("n"), 41), 0)
    assert solver.check_sat() == SolverResult.SAT
    assert solver.model_value("x", 1) == 42

    solver.push()
    solver.add_constraint(app("<", curr("x"), 0), 0)
    assert solver.check_sat() == SolverResult.UNSAT
