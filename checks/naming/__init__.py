"""Rules about declared names."""

from checks.naming.abbreviation_as_word_in_name import AbbreviationAsWordInName

__all__ = ['AbbreviationAsWordInName']
