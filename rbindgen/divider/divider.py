from rbindgen.c_types import Global


class Divider():
    """Splits the emitted declarations into type groups and extern symbols.

    Types are ordered so that everything a type embeds by value comes
    first; pointer references never constrain the order.
    """

    def __init__(self, nodes):
        nodes = list(nodes)
        types = [n for n in nodes if not n.data_type.is_symbol]
        self.type_order = self._extract_order(
            types,
            lambda n: [dep for dep, by_value in n.dependencies() if by_value],
        )
        self.symbol_order = [n for n in nodes if n.data_type.is_symbol]

    def get_type_order(self) -> list[list[Global]]:
        return self.type_order

    def get_symbol_order(self) -> list[Global]:
        return self.symbol_order

    def _extract_order(self, lst: list, dependencies_accessor) -> list[list]:
        """Emit ``lst`` level by level; mutually dependent items form one group."""
        members = set(lst)
        table = {}
        for item in lst:
            # dicts keep the dependency order stable across runs
            table[item] = list(dict.fromkeys(
                d for d in dependencies_accessor(item) if d in members and d != item
            ))

        done = set()
        groups = []
        while len(done) < len(lst):
            ready = [
                item for item in lst
                if item not in done and all(dep in done for dep in table[item])
            ]
            if ready:
                groups.extend([item] for item in ready)
                done.update(ready)
                continue

            pending = next(item for item in lst if item not in done)
            cycle = self._find_cycle(pending, table, done) or {pending}
            groups.append([item for item in lst if item in cycle])
            done.update(cycle)

        return groups

    @staticmethod
    def _find_cycle(start, table, done) -> set:
        """Members of every cycle reachable from ``start`` by a depth-first walk."""
        cycle = set()
        stack = [start]
        on_path = {start}
        seen = {start}
        while stack:
            current = stack[-1]
            descended = False
            for dep in table[current]:
                if dep in done:
                    continue
                if dep in on_path:
                    cycle.update(stack[stack.index(dep):])
                elif dep not in seen:
                    seen.add(dep)
                    on_path.add(dep)
                    stack.append(dep)
                    descended = True
                    break
            if not descended:
                stack.pop()
                on_path.discard(current)
        return cycle
