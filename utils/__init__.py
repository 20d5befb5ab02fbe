from utils.ast_utils import (Token
                             , TNum
                             , TString
                             , TBool
                             , TName
                             , TOp
                             , TFunc
                             , TList
                             , TVector
                             , TMatrix
                             , TRange
                             , TSet
                             , Tree
                             , tokens_equal
                             , trees_equal
                             , wrap_value
                             , unwrap_value)
from utils.parser_utils import precedence, content_split_brackets
from utils.set_utils import contains, distinct, union, intersection, minus
from utils.type_checker_utils import type_to_str, signature_matches, type_matches
