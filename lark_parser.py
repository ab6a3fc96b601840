from lark import Lark


# Grammar for the proto2 subset the binding generator consumes
grammar = r"""
    start: statement*

    ?statement: syntax
        | package
        | import_stmt
        | option
        | message
        | enum_def
        | extend
        | empty

    syntax: "syntax" "=" STRING ";"
    package: "package" full_ident ";"
    import_stmt: "import" IMPORT_KIND? STRING ";"
    IMPORT_KIND: "public" | "weak"

    option: "option" option_name "=" constant ";"
    option_name: option_part ("." option_part)*
    ?option_part: NAME | "(" full_ident ")"
    constant: full_ident | SIGNED_NUMBER | STRING

    message: "message" NAME "{" message_item* "}"
    ?message_item: field
        | message
        | enum_def
        | option
        | reserved
        | extensions
        | extend
        | empty

    field: LABEL? type_ref NAME "=" INT field_options? ";"
    LABEL: "required" | "optional" | "repeated"
    type_ref: absolute_ref | full_ident
    absolute_ref: "." full_ident
    full_ident: NAME ("." NAME)*
    field_options: "[" field_option ("," field_option)* "]"
    field_option: option_name "=" constant

    enum_def: "enum" NAME "{" enum_item* "}"
    ?enum_item: enum_value
        | option
        | reserved
        | empty
    enum_value: NAME "=" SIGNED_INT field_options? ";"

    reserved: "reserved" RANGE_LIST ";"
    extensions: "extensions" RANGE_LIST ";"
    RANGE_LIST: /[^;{}]+/
    extend: "extend" type_ref "{" (field | empty)* "}"
    empty: ";"

    NAME: /[a-zA-Z_][a-zA-Z0-9_]*/
    STRING: /"(\\.|[^"\\])*"/ | /'(\\.|[^'\\])*'/

    %import common.INT
    %import common.SIGNED_INT
    %import common.SIGNED_NUMBER
    %import common.CPP_COMMENT
    %import common.C_COMMENT
    %import common.WS
    %ignore WS
    %ignore CPP_COMMENT
    %ignore C_COMMENT
"""

parser = Lark(
    grammar,
    start='start',
    propagate_positions=True
)


def parse_proto(text):
    return parser.parse(text)
