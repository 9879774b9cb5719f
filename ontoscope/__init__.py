"""
OntoScope: layout engine and scoping dashboard for ontology competency questions.
"""
