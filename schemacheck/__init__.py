import importlib

mod = "schemacheck"
class LazyLoader:
    """
    Lazy loader for the schemacheck API to keep CLI startup cheap.
    """
    def __init__(self, mappings):
        self._modules = {}
        self._mappings = mappings

    def _load_module(self, module_name):
        if module_name not in self._modules:
            self._modules[module_name] = importlib.import_module(module_name)
        return self._modules[module_name]

    def __getattr__(self, item):
        if item in self._mappings:
            module_name, attr_name = self._mappings[item]
            module = self._load_module(module_name)
            return getattr(module, attr_name)
        else:
            return self._load_module(f"{mod}.{item}")

# Define the public names and their corresponding module paths
_mappings = {
    "Validator": (f"{mod}.validator", "Validator"),
    "validate_instance": (f"{mod}.validator", "validate_instance"),
    "ValidationResult": (f"{mod}.result", "ValidationResult"),
    "Failure": (f"{mod}.result", "Failure"),
    "Annotation": (f"{mod}.result", "Annotation"),
    "ValidatorConfig": (f"{mod}.config", "ValidatorConfig"),
    "FormatChecker": (f"{mod}.formats", "FormatChecker"),
    "DocumentCache": (f"{mod}.loader", "DocumentCache"),
    "parse_json": (f"{mod}.loader", "parse_json"),
    "load_document": (f"{mod}.loader", "load_document"),
    "check_schema": (f"{mod}.schema", "check_schema"),
    "RefResolver": (f"{mod}.resolver", "RefResolver"),
    "SchemaError": (f"{mod}.errors", "SchemaError"),
    "InvalidSchema": (f"{mod}.errors", "InvalidSchema"),
    "UnresolvableReference": (f"{mod}.errors", "UnresolvableReference"),
    "CyclicReference": (f"{mod}.errors", "CyclicReference"),
    "InvalidPointer": (f"{mod}.errors", "InvalidPointer"),
    "MalformedJSON": (f"{mod}.errors", "MalformedJSON"),
    "validate_file": (f"{mod}.validate", "validate_file"),
}

_lazy_loader = LazyLoader(_mappings)

def __getattr__(name):
    return getattr(_lazy_loader, name)
