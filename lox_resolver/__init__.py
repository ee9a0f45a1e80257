from .resolver import Resolver, FunctionType, ClassType, resolve_program
from .bindings import BindingRegistry, ResolutionTable
from .errors import DiagnosticsSink, ErrorReporter, ResolveError, ResolverInternalError
