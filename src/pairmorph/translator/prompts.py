"""
System instructions for the translation engine.

The instructions never change between files of the same project, so they are
sent as a cacheable system prompt. A project can replace the built-in rules
with its own file (translation.system_prompt_path).
"""

from pairmorph.config.loader import ConfigurationError
from pairmorph.config.models import PairMorphConfig

AGDA_KIND_RULES = """\
You are an expert Agda <-> Kind compiler. Your task is to translate Agda to/from Kind.

Follow these rules:

- Represent Agda's 'Char' as a Kind 'U32', and Agda's 'String' as a Kind '(List U32)'.
- Always use holes ('_') for type parameters, since these can be inferred.
- Do not compile infix operators (like '+') to Kind. Just skip them completely.
- Always translate Agda's pattern-matching equations to nested λ-matches.

About Kind:

Kind is a minimal language based on the Calculus of Constructors. Grammar:

<Term> ::=
  | ALL: "∀(" <Name> ":" <Term> ")" <Term>
  | LAM: "λ" <Name> <Term>
  | APP: "(" <Term> <Term> ")"
  | ANN: "{" <Name> ":" <Term> "}"
  | SLF: "$(" <Name> ":" <Term> ")" <Term>
  | INS: "~" <Term>
  | DAT: "#[" <Term>* "]" "{" ("#" <Name> "{" (<Name> ":" <Term>)* "}" ":" <Term>)* "}"
  | CON: "#" <Name> "{" <Term>* "}"
  | SWI: "λ{0:" <Term> "_:" <Term> "}"
  | MAT: "λ{" ("#" <Name> ":" <Term>)* "}"
  | REF: <Name>
  | LET: "let" <Name> "=" <Term> <Term>
  | SET: "*"
  | NUM: <Numb>
  | OP2: "(" ("+"|"-"|"*"|"/"|"%"|"<="|">="|"<"|">"|"=="|"!="|"&"|"|"|"^"|"<<"|">>") <Term> <Term> ")"
  | TXT: '"' <string-literal> '"'
  | HOL: "?" <Name> ("[" <Term> ("," <Term>)* "]")?
  | MET: "_" <Numb>

About lambda-match:

A λ-match is a lambda that performs a pattern-match on its argument. For example, consider:

    foo (Succ n) = (f n)
    foo Zero     = g

Without λ-match, this would be translated to:

    foo = λx match x { Succ: λn (f n) Zero: g }

With λ-match, the 'λ' and the 'match' are fused, becoming just:

    foo = λ{ Succ: λn (f n) Zero: g }

Examples:

# Base/Bool/Bool.agda

```agda
module Base.Bool.Bool where

-- Represents a Boolean value.
data Bool : Set where
  True  : Bool
  False : Bool
```

# Base/Bool/Bool.kind

```kind
use Base/Bool/ as B/

// Represents a Boolean value.
B/Bool : * = #[]{
  #True{} : B/Bool
  #False{} : B/Bool
}
```

# Base/Nat/add.agda

```agda
module Base.Nat.add where

open import Base.Nat.Nat

-- Addition of nats.
add : Nat → Nat → Nat
add Zero     n = n
add (Succ m) n = Succ (add m n)

_+_ : Nat → Nat → Nat
_+_ = add
```

# Base/Nat/add.kind

```kind
use Base/Nat/ as N/

// Addition of nats.
N/add
: ∀(m: N/Nat)
  ∀(n: N/Nat)
  N/Nat
= λ{
  #Zero: λn n
  #Succ: λm.pred λn #Succ{(N/add m.pred n)}
}
```

# Base/List/head.agda

```agda
module Base.List.head where

open import Base.List.List
open import Base.Maybe.Maybe

-- Safely retrieves the 1st element of a list.
head : ∀ {A : Set} → List A → Maybe A
head []       = None
head (x :: _) = Some x
```

# Base/List/head.kind

```kind
use Base/List/ as L/
use Base/Maybe/ as M/

// Safely retrieves the 1st element of a list.
L/head
: ∀(A: *)
  ∀(xs: (L/List A))
  (M/Maybe A)
= λA λ{
  #Nil: #None{}
  #Cons: λxs.head λxs.tail #Some{ xs.head }
}
```
"""

GENERIC_RULES = """\
You are an expert {first} <-> {second} compiler. Your task is to translate {first} to/from {second}.

Follow these rules:

- Preserve the behavior, names and documentation comments of every definition.
- Only reference definitions that appear in the provided files or the language's prelude.
- Follow the style of the already-translated file pairs shown in the context.
"""

RESPONSE_FORMAT = """\

---

Note that, sometimes, a draft will be provided. When that is the case, review it
for errors and oversights that violate the guides, and provide a final version.
Now, generate/update the last file marked as (missing) or (draft). Answer with:

{marker}Path/to/file.xyz

```lang
<updated_file_here>
```
"""


def build_system_prompt(config: PairMorphConfig) -> str:
    """
    Build the system instructions for the configured language pair.

    Args:
        config: Project configuration

    Returns:
        Translation rules followed by the response format contract

    Raises:
        ConfigurationError: If the configured rules file cannot be read
    """
    rules_path = config.translation.system_prompt_path
    if rules_path is not None:
        try:
            rules = rules_path.expanduser().read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot read system prompt file {rules_path}: {e}")
    else:
        names = {language.name.lower() for language in config.languages}
        if names == {"agda", "kind"}:
            rules = AGDA_KIND_RULES
        else:
            first, second = config.languages
            rules = GENERIC_RULES.format(first=first.name, second=second.name)

    marker = config.translation.heading_marker
    return (rules.rstrip() + "\n" + RESPONSE_FORMAT.format(marker=marker)).strip()
