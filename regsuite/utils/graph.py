"""Graph algorithms used by group resolution."""

from typing import Callable, Dict, Hashable, Iterable, List, TypeVar

N = TypeVar("N", bound=Hashable)


def strongly_connected_components(
    nodes: Iterable[N], dependencies: Callable[[N], Iterable[N]]
) -> List[List[N]]:
    """Tarjan's algorithm, returning components in discovery order.

    Iterative so that deep reference chains cannot hit the recursion limit.
    Each component lists its nodes in the order they were first visited.

    Args:
        nodes: every node of the graph
        dependencies: returns the outgoing edges of a node; targets must
            themselves be members of ``nodes``
    """
    index: Dict[N, int] = {}
    lowlink: Dict[N, int] = {}
    on_stack: Dict[N, bool] = {}
    stack: List[N] = []
    components: List[List[N]] = []
    counter = 0

    for root in nodes:
        if root in index:
            continue

        work = [(root, iter(dependencies(root)))]
        index[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack[root] = True

        while work:
            node, edges = work[-1]
            advanced = False
            for target in edges:
                if target not in index:
                    index[target] = lowlink[target] = counter
                    counter += 1
                    stack.append(target)
                    on_stack[target] = True
                    work.append((target, iter(dependencies(target))))
                    advanced = True
                    break
                if on_stack.get(target):
                    lowlink[node] = min(lowlink[node], index[target])
            if advanced:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])

            if lowlink[node] == index[node]:
                component: List[N] = []
                while True:
                    member = stack.pop()
                    on_stack[member] = False
                    component.append(member)
                    if member == node:
                        break
                component.sort(key=index.__getitem__)
                components.append(component)

    return components
