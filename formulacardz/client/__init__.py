from formulacardz.client.formula_api import FormulaCardzClient, TokenProvider

__all__ = ["FormulaCardzClient", "TokenProvider"]
