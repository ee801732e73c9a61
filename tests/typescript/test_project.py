"""Tests for nestdoc.typescript.project module resolution."""

from __future__ import annotations

from nestdoc.schema import SchemaNode
from nestdoc.typescript.project import parse_jsonc
from nestdoc.typescript.resolver import TypeRef, TypeResolver

_USER_DTO = """
export class UserDto {
  id: number;
}
"""


def _holder_value(index, relative: str = "src/holder.ts"):
    module = index.load(index.root / relative)
    member = module.declarations["Holder"].properties()[0]
    return TypeResolver(index).resolve(TypeRef.of(member.type_node, module))


def test_parse_jsonc_strips_comments_and_trailing_commas() -> None:
    text = """
    {
      // compiler settings
      "compilerOptions": {
        "baseUrl": "./", /* inline */
        "paths": {"@app/*": ["src/*"],},
      },
      "note": "keep // this",
    }
    """
    data = parse_jsonc(text)

    assert data["compilerOptions"]["paths"] == {"@app/*": ["src/*"]}
    assert data["note"] == "keep // this"


def test_source_paths_honour_include_and_exclude(project_builder) -> None:
    project_builder.write(
        {
            "src/app.ts": "export class App {}\n",
            "src/types.d.ts": "export interface Ambient {}\n",
            "src/nested/deep.ts": "export class Deep {}\n",
            "scripts/tool.ts": "export class Tool {}\n",
        }
    )
    index = project_builder.index()

    relative = [path.relative_to(index.root).as_posix() for path in index.source_paths()]

    assert relative == ["src/app.ts", "src/nested/deep.ts"]


def test_tsconfig_path_alias_resolves(project_builder) -> None:
    project_builder.write(
        {
            "tsconfig.json": """
            {
              // aliases used by the app
              "compilerOptions": {
                "baseUrl": ".",
                "paths": { "@app/*": ["src/*"] },
              }
            }
            """,
            "src/users/user.dto.ts": _USER_DTO,
            "src/holder.ts": """
            import { UserDto } from '@app/users/user.dto';

            export class Holder {
              value: UserDto;
            }
            """,
        }
    )

    resolved = _holder_value(project_builder.index())

    assert isinstance(resolved, SchemaNode)
    assert resolved.name == "UserDto"


def test_barrel_reexports_resolve(project_builder) -> None:
    project_builder.write(
        {
            "src/dto/user.dto.ts": _USER_DTO,
            "src/dto/role.dto.ts": """
            export class RoleDto {
              label: string;
            }
            """,
            "src/dto/index.ts": """
            export * from './user.dto';
            export { RoleDto as Role } from './role.dto';
            """,
            "src/holder.ts": """
            import { Role, UserDto } from './dto';

            export class Holder {
              value: UserDto;
              role: Role;
            }
            """,
        }
    )
    index = project_builder.index()
    module = index.load(index.root / "src/holder.ts")

    user = index.find_declaration("UserDto", module)
    role = index.find_declaration("Role", module)

    assert user is not None and user.name == "UserDto"
    assert role is not None and role.name == "RoleDto"
    assert user.module.path == (index.root / "src/dto/user.dto.ts").resolve()


def test_namespace_and_default_imports_resolve(project_builder) -> None:
    project_builder.write(
        {
            "src/dto/user.dto.ts": _USER_DTO,
            "src/pet.ts": """
            export default class Pet {
              name: string;
            }
            """,
            "src/holder.ts": """
            import * as dto from './dto/user.dto';
            import Animal from './pet';

            export class Holder {
              value: dto.UserDto;
              pet: Animal;
            }
            """,
        }
    )
    index = project_builder.index()
    module = index.load(index.root / "src/holder.ts")
    resolver = TypeResolver(index)
    value, pet = module.declarations["Holder"].properties()

    resolved_value = resolver.resolve(TypeRef.of(value.type_node, module))
    resolved_pet = resolver.resolve(TypeRef.of(pet.type_node, module))

    assert isinstance(resolved_value, SchemaNode) and resolved_value.name == "UserDto"
    assert isinstance(resolved_pet, SchemaNode) and resolved_pet.name == "Pet"


def test_modules_are_loaded_once_per_index(project_builder) -> None:
    project_builder.write({"src/app.ts": "export class App {}\n"})
    index = project_builder.index()
    path = index.root / "src/app.ts"

    assert index.load(path) is index.load(path)
    assert index.loaded_paths == [path.resolve()]
    assert project_builder.index().load(path) is not index.load(path)


def test_node_builtins_are_not_project_modules(project_builder) -> None:
    project_builder.write({"src/app.ts": "import { readFile } from 'node:fs';\n"})
    index = project_builder.index()
    module = index.load(index.root / "src/app.ts")

    assert index.resolve_specifier("node:fs", module) is None
    assert index.is_external("readFile", module) is True


def test_cyclic_default_reexports_resolve_to_nothing(project_builder) -> None:
    project_builder.write(
        {
            "src/a.ts": """
            import X from './b';
            export default X;
            """,
            "src/b.ts": """
            import X from './a';
            export default X;
            """,
            "src/holder.ts": """
            import X from './a';

            export class Holder {
              value: X;
            }
            """,
        }
    )
    index = project_builder.index()
    module = index.load(index.root / "src/holder.ts")

    assert index.find_declaration("X", module) is None
    assert _holder_value(index) is None
