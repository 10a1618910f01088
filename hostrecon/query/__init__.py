from .plan import JoinItem, OrderItem, QueryPlan, QueryResult, ResultRow, SelectItem

__all__ = ["JoinItem", "OrderItem", "QueryPlan", "QueryResult", "ResultRow", "SelectItem"]
