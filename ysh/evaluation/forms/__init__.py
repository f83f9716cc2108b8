"""Registry of evaluation forms for the ysh evaluator.

Maps node classes to handler functions. Every handler has the signature
`(node, env, context, evaluate_fn) -> value`.
"""

from ysh.syntax.nodes import (
    Assign,
    BinaryOp,
    Block,
    Command,
    FunctionCall,
    FunctionDef,
    If,
    Interpolation,
    Let,
    Literal,
    Program,
    Return,
    Substitution,
    UnaryOp,
    VariableRef,
)
from ysh.evaluation.forms.atom_forms import literal_form, variable_form, interpolation_form
from ysh.evaluation.forms.let_forms import let_form, assign_form
from ysh.evaluation.forms.if_form import if_form
from ysh.evaluation.forms.block_form import block_form, program_form, substitution_form
from ysh.evaluation.forms.function_forms import function_def_form, function_call_form, return_form
from ysh.evaluation.forms.operator_forms import binary_form, unary_form
from ysh.evaluation.forms.command_form import command_form

FORMS = {
    Literal: literal_form,
    VariableRef: variable_form,
    Interpolation: interpolation_form,
    Let: let_form,
    Assign: assign_form,
    If: if_form,
    Block: block_form,
    Program: program_form,
    Substitution: substitution_form,
    FunctionDef: function_def_form,
    FunctionCall: function_call_form,
    Return: return_form,
    BinaryOp: binary_form,
    UnaryOp: unary_form,
    Command: command_form,
}
