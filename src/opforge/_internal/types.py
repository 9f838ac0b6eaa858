"""Catalog of common type constraints and attribute constraints."""

from .defs import AttrConstraint, Pred, TypeConstraint

# Type constraints.

AnyType = TypeConstraint("any type")

Tensor = TypeConstraint("tensor of any type values", Pred("$_self.isa<TensorType>()"))

F32 = TypeConstraint("32-bit float", Pred("$_self.isF32()"))

F64 = TypeConstraint("64-bit float", Pred("$_self.isF64()"))

I1 = TypeConstraint("1-bit integer", Pred("$_self.isInteger(1)"))

I32 = TypeConstraint("32-bit integer", Pred("$_self.isInteger(32)"))

I64 = TypeConstraint("64-bit integer", Pred("$_self.isInteger(64)"))

Index = TypeConstraint("index", Pred("$_self.isa<IndexType>()"))

FloatLike = TypeConstraint(
    "floating-point-like",
    Pred(
        "$_self.isa<FloatType>() || "
        "($_self.isa<VectorOrTensorType>() && "
        "$_self.cast<VectorOrTensorType>().getElementType().isa<FloatType>())"
    ),
)

MemRef = TypeConstraint("memref", Pred("$_self.isa<MemRefType>()"))


def TensorOf(element: TypeConstraint) -> TypeConstraint:
    """
    A tensor whose element type satisfies `element`.

    The element predicate is rewritten to apply to the tensor's element
    type, so `element` must carry a predicate.
    """
    if element.predicate is None:
        return Tensor
    element_cond = element.predicate.condition.replace(
        "$_self", "$_self.cast<TensorType>().getElementType()"
    )
    return TypeConstraint(
        f"tensor of {element.description} values",
        Pred(f"$_self.isa<TensorType>() && {element_cond}"),
    )


# Attribute constraints.

AnyAttr = AttrConstraint("Attribute", "Attribute", "any attribute")

BoolAttr = AttrConstraint(
    "BoolAttr",
    "bool",
    "bool attribute",
    convert_from_storage="$_self.getValue()",
    const_builder_call="$_builder.getBoolAttr($0)",
    predicate=Pred("$_self.isa<BoolAttr>()"),
)

I32Attr = AttrConstraint(
    "IntegerAttr",
    "APInt",
    "32-bit integer attribute",
    convert_from_storage="$_self.getValue()",
    const_builder_call="$_builder.getI32IntegerAttr($0)",
    predicate=Pred(
        "$_self.isa<IntegerAttr>() && "
        "$_self.cast<IntegerAttr>().getType().isInteger(32)"
    ),
)

I64Attr = AttrConstraint(
    "IntegerAttr",
    "APInt",
    "64-bit integer attribute",
    convert_from_storage="$_self.getValue()",
    const_builder_call="$_builder.getI64IntegerAttr($0)",
    predicate=Pred(
        "$_self.isa<IntegerAttr>() && "
        "$_self.cast<IntegerAttr>().getType().isInteger(64)"
    ),
)

F32Attr = AttrConstraint(
    "FloatAttr",
    "APFloat",
    "32-bit float attribute",
    convert_from_storage="$_self.getValue()",
    const_builder_call="$_builder.getF32FloatAttr($0)",
    predicate=Pred(
        "$_self.isa<FloatAttr>() && $_self.cast<FloatAttr>().getType().isF32()"
    ),
)

StrAttr = AttrConstraint(
    "StringAttr",
    "StringRef",
    "string attribute",
    convert_from_storage="$_self.getValue()",
    const_builder_call='$_builder.getStringAttr("$0")',
    predicate=Pred("$_self.isa<StringAttr>()"),
)

TypeAttr = AttrConstraint(
    "TypeAttr",
    "Type",
    "any type attribute",
    convert_from_storage="$_self.getValue().cast<Type>()",
    predicate=Pred("$_self.isa<TypeAttr>()"),
    is_type_attr=True,
)

SymbolRefAttr = AttrConstraint(
    "SymbolRefAttr",
    "StringRef",
    "symbol reference attribute",
    convert_from_storage="$_self.getValue()",
    predicate=Pred("$_self.isa<SymbolRefAttr>()"),
)

ElementsAttr = AttrConstraint(
    "ElementsAttr",
    "ElementsAttr",
    "constant vector/tensor attribute",
    predicate=Pred("$_self.isa<ElementsAttr>()"),
)
