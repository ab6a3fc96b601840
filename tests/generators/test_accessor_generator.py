from model import ModuleKind, Occurrence
from tree_classifier import EdgeKind, TreeClassifier
from generators.accessor_generator import AccessorGenerator
from tests.test_utils import graph, message, repeated, scalar, self_referential_graph


def person_graph():
    return graph(
        ("Person", [
            scalar("name", "string", 1),
            message("address", "Person.Address", 2),
            repeated("phones", "Person.Phone", 3),
            scalar("emails", "string", 4, Occurrence.REPEATED),
        ]),
        ("Person.Address", [
            scalar("street", "string", 1),
            message("geo", "Person.Address.Geo", 2),
        ]),
        ("Person.Address.Geo", [scalar("lat", "double", 1), scalar("lng", "double", 2)]),
        ("Person.Phone", [scalar("number", "string", 1)]),
    )


def flatten(g, base, requests=None):
    def request(name, kind):
        requests.append((name, kind))
    generator = AccessorGenerator(g, TreeClassifier(g), request_module=request if requests is not None else None)
    return generator.flatten(base)


def test_flatten_inlines_nested_singular_messages():
    chains = flatten(person_graph(), "Person")
    assert [(c.path_name, edge) for c, edge in chains] == [
        ("name", EdgeKind.TERMINAL),
        ("address_street", EdgeKind.TERMINAL),
        ("address_geo_lat", EdgeKind.TERMINAL),
        ("address_geo_lng", EdgeKind.TERMINAL),
        ("phones", EdgeKind.OPAQUE_REPEATED),
        ("emails", EdgeKind.TERMINAL),
    ]


def test_chains_are_stored_innermost_first():
    chains = dict((c.path_name, c) for c, _ in flatten(person_graph(), "Person"))
    chain = chains["address_geo_lat"]
    assert [f.name for f in chain.fields] == ["lat", "geo", "address"]
    assert chain.terminal.name == "lat"
    assert chain.owner == "Person.Address.Geo"
    assert chain.node_types() == ["Person", "Person.Address", "Person.Address.Geo"]


def test_chain_types_are_distinct():
    for chain, _ in flatten(person_graph(), "Person"):
        types = chain.node_types()
        assert len(types) == len(set(types))


def test_repeated_message_fields_request_their_module():
    requests = []
    flatten(person_graph(), "Person", requests)
    assert requests == [("Person.Phone", ModuleKind.REPEATED_TARGET)]


def test_circular_repeated_target_is_not_requested():
    requests = []
    chains = flatten(self_referential_graph(), "Node", requests)
    assert requests == []
    assert [(c.path_name, edge) for c, edge in chains] == [
        ("value", EdgeKind.TERMINAL),
        ("children", EdgeKind.OPAQUE_REPEATED),
    ]


def test_flatten_stops_at_circular_join_point():
    g = graph(
        ("Tree", [message("top", "Tree.Node", 1)]),
        ("Tree.Node", [message("owner", "Tree", 1), scalar("label", "string", 2)]),
    )
    chains = flatten(g, "Tree")
    assert [(c.path_name, edge) for c, edge in chains] == [
        ("top_owner", EdgeKind.OPAQUE_SINGLE),
        ("top_label", EdgeKind.TERMINAL),
    ]


def test_sibling_nested_type_is_inlined_from_the_root():
    g = graph(
        ("X", [message("y", "X.Y", 1)]),
        ("X.Y", [message("z", "X.Z", 1)]),
        ("X.Z", [scalar("v", "int32", 1)]),
    )
    assert [c.path_name for c, _ in flatten(g, "X")] == ["y_z_v"]


def test_empty_nested_message_yields_no_chains():
    g = graph(
        ("Person", [scalar("name", "string", 1), message("extra", "Person.Extra", 2)]),
        ("Person.Extra", []),
    )
    assert [c.path_name for c, _ in flatten(g, "Person")] == ["name"]


def test_generate_lists_functions_per_chain():
    g = person_graph()
    generator = AccessorGenerator(g, TreeClassifier(g))
    functions = dict((d.chain.path_name, d.functions) for d in generator.generate("Person"))
    assert functions["name"] == ["name_get", "name_set"]
    assert functions["address_geo_lat"] == ["address_geo_lat_get", "address_geo_lat_set"]
    assert functions["phones"] == ["phones_get", "phones_set", "phones_add"]
    assert functions["emails"] == ["emails_get", "emails_set", "emails_add"]


def test_rendered_setter_descends_lazily_and_rebuilds():
    g = person_graph()
    generator = AccessorGenerator(g, TreeClassifier(g))
    directives = dict((d.chain.path_name, d) for d in generator.generate("Person"))
    lines = directives["address_geo_lat"].lines
    source = "\n".join(lines)
    assert lines[0] == "# Person.Address.Geo { optional double lat = 1; }"
    assert "def address_geo_lat_set(person, value):" in source
    assert "        address = Person_Address()" in source
    assert "        geo = Person_Address_Geo()" in source
    assert "    geo = replace(geo, lat=value)" in source
    assert "    address = replace(address, geo=geo)" in source
    assert "    return replace(person, address=address)" in source
    assert 'return InvalidArgument("address_geo_lat_set", value)' in source
    assert directives["address_geo_lat"].record_names == ["Person", "Person_Address", "Person_Address_Geo"]


def test_rendered_add_prepends():
    g = person_graph()
    generator = AccessorGenerator(g, TreeClassifier(g))
    directives = dict((d.chain.path_name, d) for d in generator.generate("Person"))
    source = "\n".join(directives["phones"].lines)
    assert "def phones_add(person, value):" in source
    assert "if not (isinstance(value, Person_Phone)):" in source
    assert "phones = [value] if phones is None else [value] + list(phones)" in source
    assert "Person_Phone" in directives["phones"].record_names


def test_rendered_functions_compile():
    g = person_graph()
    generator = AccessorGenerator(g, TreeClassifier(g))
    for directives in generator.generate("Person"):
        compile("\n".join(directives.lines), directives.chain.path_name, "exec")


def test_keyword_field_names_get_safe_attributes():
    g = graph(("Flow", [scalar("from", "string", 1), scalar("class", "int32", 2)]))
    generator = AccessorGenerator(g, TreeClassifier(g))
    directives = generator.generate("Flow")
    source = "\n".join(line for d in directives for line in d.lines)
    assert "def from_get(flow):" in source
    assert "return flow.from_" in source
    assert "return replace(flow, class_=value)" in source
    compile(source, "flow", "exec")


def test_opaque_single_reference_requests_its_module():
    g = graph(
        ("Person", [message("address", "Person.Address", 1)]),
        ("Person.Address", [scalar("street", "string", 1)]),
        ("Company", [message("hq", "Person.Address", 1), message("ceo", "Person", 2)]),
    )
    requests = []
    chains = flatten(g, "Company", requests)
    assert [(c.path_name, edge) for c, edge in chains] == [
        ("hq", EdgeKind.OPAQUE_SINGLE),
        ("ceo", EdgeKind.OPAQUE_SINGLE),
    ]
    assert requests == [
        ("Person.Address", ModuleKind.OPAQUE),
        ("Person", ModuleKind.OPAQUE),
    ]


def test_circular_opaque_single_target_is_not_requested():
    g = graph(
        ("Tree", [message("top", "Tree.Node", 1)]),
        ("Tree.Node", [message("owner", "Tree", 1), scalar("label", "string", 2)]),
    )
    requests = []
    flatten(g, "Tree", requests)
    assert requests == []
