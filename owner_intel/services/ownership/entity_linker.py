"""
Entity Linker - ties corporate candidates to individuals sharing an address.

Runs once the candidate set is complete (address sets only grow during
collection) and before scoring, which reads the links.
"""

from loguru import logger

from owner_intel.services.ownership.candidate_graph import CandidateGraph


def link_entities(graph: CandidateGraph) -> int:
    """Link every entity to every individual with an identical contact address.

    Returns the number of new entity/individual pairs.
    """
    entities = [i for i in graph.indices() if graph.get(i).is_entity]
    individuals = [i for i in graph.indices() if not graph.get(i).is_entity]

    links = 0
    for e_idx in entities:
        entity = graph.get(e_idx)
        entity_addresses = {ci.value for ci in entity.contact_info}
        if not entity_addresses:
            continue
        for i_idx in individuals:
            individual = graph.get(i_idx)
            if individual.name in entity.linked_entities:
                continue
            shared = entity_addresses.intersection(ci.value for ci in individual.contact_info)
            if shared:
                graph.link(e_idx, i_idx)
                links += 1
                logger.debug(f"Linked {entity.name} <-> {individual.name} via {sorted(shared)[0]}")

    return links
